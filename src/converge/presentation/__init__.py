"""Presentation layer - human-friendly formatting."""

from .human_formatter import format_apply_result, format_outputs, format_plan, format_record, format_state_list

__all__ = ["format_apply_result", "format_outputs", "format_plan", "format_record", "format_state_list"]
