"""
billview.shortcodes
===================

Short codes put a statement behind a link that is easy to read aloud or
retype from a text message: no ``0/O``, ``1/l/I`` or ``i/o`` lookalikes.
"""

from __future__ import annotations

import secrets

SHORT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
SHORT_CODE_LENGTH = 6


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Return a random code drawn from :data:`SHORT_CODE_ALPHABET`."""
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))
