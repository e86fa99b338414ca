"""
Input screening for user-supplied announcement text.
"""

import re
from typing import Iterable, Optional

# Markup that would execute when an announcement is rendered in the feed
DANGEROUS_PATTERN = re.compile(r"<script|javascript:|onerror=|onclick=", re.IGNORECASE)


def is_safe_text(value: Optional[str]) -> bool:
    """Return False if the text matches the injection denylist."""
    if value is None:
        return True
    return DANGEROUS_PATTERN.search(value) is None


def find_unsafe(values: Iterable[Optional[str]]) -> Optional[str]:
    """Return the first value that fails ``is_safe_text``, or None."""
    for value in values:
        if not is_safe_text(value):
            return value
    return None
