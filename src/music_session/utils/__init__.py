"""
Cross-cutting utilities for Music Session.

Contains:
- optimistic: speculative state updates with commit/rollback
"""

from .optimistic import OptimisticTransaction, OptimisticValue

__all__ = ["OptimisticTransaction", "OptimisticValue"]
