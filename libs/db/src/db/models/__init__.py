"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the finance models used by ``auto_categorize``.
"""

from .finance import Base, FaCategory, FaMajorCategory, FaRule, FaTransaction

__all__ = [
    "Base",
    "FaMajorCategory",
    "FaCategory",
    "FaTransaction",
    "FaRule",
]
