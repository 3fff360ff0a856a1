"""
Equipment-number helpers for stock item descriptive fields.

Receives carry free-text equipment lists like "101-103, 110, Crane".
These helpers normalize them into a sorted, de-duplicated list so merging
into StockItem.applicable_equipments stays stable.
"""

import re

_RANGE_RE = re.compile(r'^(\d+)\s*-\s*(\d+)$')


def split_csv(text: str | None) -> list[str]:
    """Split a comma list, dropping blanks."""
    return [token.strip() for token in str(text or '').split(',') if token.strip()]


def expand_equipment_numbers(text: str | None) -> list[str]:
    """
    Expand an equipment list.

    Rules:
    - "101-103" → 101, 102, 103 (reversed bounds are accepted)
    - plain numbers kept as numbers
    - anything else kept as a name

    Returns numbers ascending, then names alphabetically, no duplicates.
    """
    numbers: set[int] = set()
    names: set[str] = set()

    for token in split_csv(text):
        match = _RANGE_RE.match(token)
        if match:
            start, end = sorted((int(match.group(1)), int(match.group(2))))
            numbers.update(range(start, end + 1))
        elif token.isdigit():
            numbers.add(int(token))
        else:
            names.add(token)

    return [str(n) for n in sorted(numbers)] + sorted(names)


def merge_csv(existing: str | None, new: str | None) -> str:
    """Append the tokens of `new` missing from `existing`, keeping order."""
    merged = split_csv(existing)
    for token in split_csv(new):
        if token not in merged:
            merged.append(token)
    return ','.join(merged)


def merge_equipments(existing: str | None, new: str | None) -> str:
    return ','.join(expand_equipment_numbers(f"{existing or ''},{new or ''}"))
