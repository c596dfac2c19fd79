"""Formatting helpers: strip legacy colour/format codes from head names.

Upstream names may carry markup such as::

    ``§aSteve``
    ``§l§6Golden Apple``

Name search compares the plain text only, so both the stored name and the
query go through :func:`strip_formatting` first.
"""

from __future__ import annotations

import re

# Section sign followed by a colour (0-9, a-f), a format
# (k-o), reset (r) or hex marker (x).
_FORMAT_CODE_RE = re.compile(r"§[0-9a-fk-orx]", re.IGNORECASE)


def strip_formatting(text: str) -> str:
    """Return *text* without colour or format codes."""
    if not text:
        return ""
    return _FORMAT_CODE_RE.sub("", text)


def normalize_for_search(text: str) -> str:
    """Lower-case and strip formatting for substring comparison."""
    return strip_formatting(text).lower()
