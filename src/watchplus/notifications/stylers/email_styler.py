# -*- coding: utf-8 -*-
"""Email body styler: HTML with a colored diff, plain text fallback."""

from __future__ import annotations

from html import escape

from watchplus.notifications.types import NotificationStyler
from watchplus.utils.diff import diff_to_html

_SANS = "font-family:sans-serif"
_MUTED = "color:#586069"


class EmailStyler(NotificationStyler):
    """Render change notifications for email clients."""

    def render(self, command: str, diff_text: str, *, parse_html: bool = False) -> str:
        if not parse_html:
            return diff_text
        return "\n".join(
            [
                f'<h2 style="{_SANS};margin:0 0 16px">Change detected</h2>',
                f'<p style="{_SANS};{_MUTED};margin:0 0 16px">'
                f"Command: <code>{escape(command, quote=False)}</code></p>",
                diff_to_html(diff_text),
                f'<p style="{_SANS};{_MUTED};font-size:12px;margin:16px 0 0">Sent by watch+</p>',
            ]
        )
