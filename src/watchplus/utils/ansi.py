"""ANSI-aware text helpers: stripping control sequences and width-limited truncation.

Width is counted in raw characters; wide and combining characters are not
special-cased. OSC sequences are only recognised when terminated by BEL; the
two-byte ST terminator is not handled.
"""

from __future__ import annotations

import re

ESC = "\x1b"

_CSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")
_OSC_RE = re.compile(r"\x1b\][^\x07]*\x07")


def strip_ansi(text: str) -> str:
    """Return text without CSI and BEL-terminated OSC sequences.

    Any escape byte left over (unrecognised or unterminated sequence) is
    dropped as well, so the result never contains ESC.
    """
    text = _CSI_RE.sub("", text)
    text = _OSC_RE.sub("", text)
    return text.replace(ESC, "")


def _is_final_byte(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def truncate_to_width(line: str, max_width: int) -> str:
    """Cut line after max_width visible characters.

    Escape sequences (ESC up to and including the first ASCII letter) are
    copied whole and take no width. Scanning stops at the first visible
    character past the budget, so sequences that follow the last kept
    character are preserved.
    """
    if max_width <= 0:
        return ""
    width = 0
    in_escape = False
    out: list[str] = []
    for ch in line:
        if ch == ESC:
            in_escape = True
            out.append(ch)
            continue
        if in_escape:
            out.append(ch)
            if _is_final_byte(ch):
                in_escape = False
            continue
        if width >= max_width:
            break
        out.append(ch)
        width += 1
    return "".join(out)
