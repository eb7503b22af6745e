"""
guard.py - Re-entry Guard for Marketplace Operations

A single mutual-exclusion flag shared by every state-mutating marketplace
operation. It is held for the whole operation, including the value transfers
whose receive hooks may call back into the marketplace, and released on every
exit path.

Usage:
    guard = ReentrancyGuard()
    with guard:
        ...  # a nested `with guard:` raises ReentrancyError
"""

from __future__ import annotations

from .core import ReentrancyError


class ReentrancyGuard:
    """Non-reentrant scoped lock; acquiring it twice raises instead of blocking."""

    def __init__(self, name: str = "marketplace"):
        self.name = name
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    def __enter__(self) -> 'ReentrancyGuard':
        if self._entered:
            raise ReentrancyError(f"re-entrant call into {self.name}")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._entered = False
        return False
