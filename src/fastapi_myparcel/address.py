"""Street line parsing into street, house number and suffix."""

from __future__ import annotations

import re
from typing import NamedTuple

_NUMBER_ONLY = re.compile(r"^\d+[a-zA-Z]{0,5}$")
_LEADING = re.compile(r"^(\d+)\s*(\S*)\s+(.*)$")
_TRAILING = re.compile(r"^(.*?) +(\d+)\s*(\S*)$")
_ANY_NUMBER = re.compile(r"\d+")


class ParsedStreet(NamedTuple):
    street: str
    number: str | None
    suffix: str | None


def _normalize(value: str) -> str:
    return re.sub(r"\s+", " ", value.replace(",", " ")).strip()


def parse_street(
    address_1: str | None, address_2: str | None = None
) -> ParsedStreet:
    """Split free-text address lines into ``(street, number, suffix)``.

    Never raises. When nothing matches, the first line is returned
    verbatim as the street with no number.
    """
    raw = (address_1 or "").strip()
    if not raw:
        return ParsedStreet("", None, None)

    line_1 = _normalize(raw)
    line_2 = _normalize(address_2 or "")

    # Checkout forms often put the number in line 1 and the street in line 2.
    if _NUMBER_ONLY.match(line_1) and line_2:
        match = _LEADING.match(line_2)
        if match:
            return ParsedStreet(
                street=(match.group(3) or line_2).strip(),
                number=match.group(1),
                suffix=match.group(2).strip() or None,
            )
        return ParsedStreet(street=line_2, number=line_1, suffix=None)

    # "Downing Street 10A"
    match = _TRAILING.match(line_1)
    if match:
        street = match.group(1).strip()
        number = match.group(2).strip()
        if street and number:
            return ParsedStreet(street, number, match.group(3).strip() or None)

    # "10A Downing Street"
    match = _LEADING.match(line_1)
    if match:
        number = match.group(1).strip()
        street = match.group(3).strip()
        if street and number:
            return ParsedStreet(street, number, match.group(2).strip() or None)

    if address_2:
        match = _ANY_NUMBER.search(address_2)
        if match:
            number = match.group(0)
            suffix = address_2.replace(number, "", 1).strip() or None
            return ParsedStreet(street=raw, number=number, suffix=suffix)

    return ParsedStreet(street=raw, number=None, suffix=None)
