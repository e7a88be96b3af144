"""Unified diff text and its HTML rendering for email bodies."""

from __future__ import annotations

import difflib
from html import escape

_ADDED_STYLE = "color:#22863a;background:#f0fff4"
_REMOVED_STYLE = "color:#cb2431;background:#ffeef0"
_HUNK_STYLE = "color:#6f42c1"
_PRE_STYLE = (
    "font-family:'SFMono-Regular',Consolas,'Liberation Mono',Menlo,monospace;"
    "font-size:13px;line-height:1.45;padding:16px;overflow:auto;"
    "background:#f6f8fa;border-radius:6px"
)
NO_NEWLINE_MARKER = "\\ No newline at end of file"


def has_changed(old_output: str, new_output: str) -> bool:
    """Exact, whitespace-sensitive comparison."""
    return old_output != new_output


def _split_lines(text: str) -> list[str]:
    # Split on "\n" only and keep it, so "\r" and a missing final newline still differ
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def generate_diff(old_output: str, new_output: str, label: str) -> str:
    """Return a unified patch between two outputs, labelled with the command.

    A last line without a trailing newline is followed by the
    "\\ No newline at end of file" marker, so a change in line endings alone
    still produces a hunk.
    """
    body = difflib.unified_diff(
        _split_lines(old_output),
        _split_lines(new_output),
        fromfile=label,
        tofile=label,
        fromfiledate="previous",
        tofiledate="current",
        lineterm="",
    )
    out = [f"Index: {label}", "=" * 67]
    for i, line in enumerate(body):
        if i < 2 or line.startswith("@"):
            out.append(line)
        elif line.endswith("\n"):
            out.append(line[:-1])
        else:
            out.append(line)
            out.append(NO_NEWLINE_MARKER)
    return "\n".join(out) + "\n"


def _render_line(line: str) -> str:
    escaped = escape(line, quote=True)
    if line.startswith("+") and not line.startswith("+++"):
        return f'<span style="{_ADDED_STYLE}">{escaped}</span>'
    if line.startswith("-") and not line.startswith("---"):
        return f'<span style="{_REMOVED_STYLE}">{escaped}</span>'
    if line.startswith("@@"):
        return f'<span style="{_HUNK_STYLE}">{escaped}</span>'
    return escaped


def diff_to_html(diff_text: str) -> str:
    """Wrap a unified patch in a <pre> block with added/removed/hunk lines colored."""
    lines = [_render_line(line) for line in diff_text.split("\n")]
    return f'<pre style="{_PRE_STYLE}">' + "\n".join(lines) + "</pre>"
