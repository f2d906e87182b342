"""Recorded actual state."""

from .models import ActualStateRecord
from .refresh import RefreshedState, refresh_snapshot, refresh_state
from .store import JsonStateStore, MemoryStateStore, StateStore

__all__ = [
    "ActualStateRecord",
    "JsonStateStore",
    "MemoryStateStore",
    "RefreshedState",
    "StateStore",
    "refresh_snapshot",
    "refresh_state",
]
