"""Jinja2 Markdown templates for stored scenario artifacts."""

from firesim.templates.renderer import LogRenderer, format_datetime, format_duration

__all__ = ["LogRenderer", "format_datetime", "format_duration"]
