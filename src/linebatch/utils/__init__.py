"""Utility functions for line batch processing."""

from .text import TextBuffer, render_summary

__all__ = ["TextBuffer", "render_summary"]
