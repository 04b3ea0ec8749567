"""Audit trail for compliance documents."""

from .service import new_timeline_entry, append_entry, sorted_for_display

__all__ = ["new_timeline_entry", "append_entry", "sorted_for_display"]
