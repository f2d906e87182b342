"""Desired vs recorded state comparison."""

from .differ import Differ
from .models import AttributeChange, DiffAction, DiffEntry, DiffSet

__all__ = ["AttributeChange", "DiffAction", "DiffEntry", "DiffSet", "Differ"]
