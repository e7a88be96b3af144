# -*- coding: utf-8 -*-
"""Utility modules."""

from watchplus.utils.ansi import strip_ansi, truncate_to_width
from watchplus.utils.diff import diff_to_html, generate_diff, has_changed

__all__ = [
    "diff_to_html",
    "generate_diff",
    "has_changed",
    "strip_ansi",
    "truncate_to_width",
]
