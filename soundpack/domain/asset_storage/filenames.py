"""
Filename sanitization for Content-Disposition headers.
"""

import re
from typing import Optional

_TRAVERSAL = re.compile(r"(\.\./|/)")
_UNSAFE = re.compile(r'[\\"\x00-\x1f\x7f]')


def sanitize_filename(filename: Optional[str], fallback: str) -> str:
    """
    Strip path traversal sequences and header-breaking characters.

    Removes every "../" and "/" segment, then backslashes, double quotes and
    control characters. Returns ``fallback`` when nothing usable remains.

    Examples:
        >>> sanitize_filename("../../etc/passwd", "pack.zip")
        'etcpasswd'
        >>> sanitize_filename("", "pack.zip")
        'pack.zip'
    """
    if not filename:
        return fallback

    cleaned = _TRAVERSAL.sub("", str(filename))
    cleaned = _UNSAFE.sub("", cleaned).strip()

    if not cleaned or cleaned in (".", ".."):
        return fallback
    return cleaned
