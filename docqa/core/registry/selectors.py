"""
Document selector parsing.

Dependencies: re (stdlib)
System role: Normalizes the `doc` query parameter and query request selectors
"""

import re
from typing import Iterable

_SEPARATORS = re.compile(r"[\s+,]+")


def parse_selectors(raw: str | Iterable[str] | None) -> list[str]:
    """
    Split selector input into distinct selectors, keeping first-seen order.

    Accepts "a+b", "a b", "a,b" or a list of such strings.

    Args:
        raw: Selector string or iterable of selector strings

    Returns:
        list[str]: Distinct, non-empty selectors
    """
    if raw is None:
        return []
    parts = [raw] if isinstance(raw, str) else list(raw)

    selectors: list[str] = []
    for part in parts:
        for selector in _SEPARATORS.split(part.strip()):
            if selector and selector not in selectors:
                selectors.append(selector)
    return selectors
