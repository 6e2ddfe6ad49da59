"""fincontas_db: shared database library (SQLAlchemy models and SQL migrations).

Public exports
--------------
- ``Base`` and ``metadata`` for the ORM models in ``fincontas_db.models.finance``
- Engine/session helpers in ``fincontas_db.client``
- The migration runner in ``fincontas_db.migrations``
"""

from __future__ import annotations

from .migrations import MigrationError, MigrationRunner
from .models.finance import Base

metadata = Base.metadata

__all__ = [
    "Base",
    "MigrationError",
    "MigrationRunner",
    "metadata",
]
