"""
Core utilities shared across the data-access layer.

This package provides:
- Application-level settings (separate from DB settings)
- Structured logging with correlation/actor context
- The error taxonomy and the actor model used for capability checks
"""
