"""
Description Generator Module.

Builds a short human-readable summary from the first meaningful lines
of a document.
"""

import re
from typing import List

from config import get_config
from .entities import NO_DESCRIPTION


SEPARATOR = " | "

# Receipt bookkeeping lines that say nothing about the purchase
_SKIP_PREFIX_RE = re.compile(
    r'^(?:total|subtotal|sub-total|tax|tip|change|cash|credit|debit|card|date|time|receipt|invoice)\b',
    re.IGNORECASE
)


def _is_meaningful(line: str, min_length: int, max_length: int) -> bool:
    if not (min_length <= len(line) <= max_length):
        return False
    if not re.search(r'[A-Za-z]{2}', line):
        return False
    return not _SKIP_PREFIX_RE.match(line)


def generate_description(text: str) -> str:
    """
    Join the first meaningful lines of ``text`` within a character budget.

    Lines must be 10-100 characters long, contain words and not be
    total/tax/payment bookkeeping. Returns ``"No description available"``
    when nothing qualifies.

    Example:
        >>> generate_description("Great Value Milk 1 Gal\\nBananas Organic 2 lb")
        'Great Value Milk 1 Gal | Bananas Organic 2 lb'
    """
    if not text or not text.strip():
        return NO_DESCRIPTION

    max_lines = get_config("extraction.description.max_lines", 3)
    budget = get_config("extraction.description.max_length", 200)
    min_length = get_config("extraction.description.min_line_length", 10)
    max_length = get_config("extraction.description.max_line_length", 100)

    selected: List[str] = []
    used = 0
    for raw in text.splitlines():
        line = re.sub(r'\s+', ' ', raw).strip()
        if not _is_meaningful(line, min_length, max_length):
            continue

        cost = len(line) + (len(SEPARATOR) if selected else 0)
        if used + cost > budget:
            break
        selected.append(line)
        used += cost
        if len(selected) >= max_lines:
            break

    if not selected:
        return NO_DESCRIPTION
    return SEPARATOR.join(selected)
