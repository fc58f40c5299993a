"""Database utilities and models."""

from kaamyab.db.base import Base
from kaamyab.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
