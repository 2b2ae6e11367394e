"""
Programmatic Alembic migration runner.

Allows running migrations without an alembic.ini by configuring the script location
to this package's migrations directory.

Usage examples:
    python -m pathways_data.db.run_migrations upgrade head
    python -m pathways_data.db.run_migrations downgrade -1
    python -m pathways_data.db.run_migrations current
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from alembic import command
from alembic.config import Config

from pathways_data.core.logging import configure_logging
from pathways_data.db.config import get_settings

logger = logging.getLogger(__name__)


def build_config() -> Config:
    """Alembic Config pointing at the bundled migrations and the configured database."""
    cfg = Config()
    script_location = Path(__file__).resolve().parent / "migrations"
    cfg.set_main_option("script_location", str(script_location))
    # Offline URL; env.py switches to the async URL for online runs.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


_COMMANDS: Dict[str, Callable[[Config, List[str]], None]] = {
    "upgrade": lambda cfg, rest: command.upgrade(cfg, *(rest or ["head"])),
    "downgrade": lambda cfg, rest: command.downgrade(cfg, *(rest or ["-1"])),
    "history": lambda cfg, rest: command.history(cfg, *rest),
    "current": lambda cfg, rest: command.current(cfg, *rest),
    "heads": lambda cfg, rest: command.heads(cfg, *rest),
}


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        logger.error("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, rest = args[0], args[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        logger.error("Unsupported Alembic command: %s (supported: %s)", cmd, ", ".join(sorted(_COMMANDS)))
        sys.exit(2)
    handler(build_config(), rest)


if __name__ == "__main__":
    configure_logging()
    main()
