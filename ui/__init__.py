"""Overlay rendering."""

from .overlay import OverlayRenderer, class_color, draw_status, format_label, letterbox_frame

__all__ = ["OverlayRenderer", "class_color", "draw_status", "format_label", "letterbox_frame"]
