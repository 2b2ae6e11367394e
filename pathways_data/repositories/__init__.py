"""
Repository layer for data access.

The query builder composes read statements for the fixed entity shapes; the
counseling repositories hold the write paths of the request workflow. Each
operation runs on its own AsyncSession drawn from the shared session factory.
"""
