"""Unix-style LIST output decoding."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

logger = logging.getLogger("ftpsclient.listing")


# permissions links owner group size month day time-or-year, one separator, name
ENTRY_PATTERN = re.compile(r"^\s*((?:\S+\s+){7}\S+)\s(.+)$")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# "Mon DD HH:MM" entries further than this in the future belong to last year
FUTURE_TOLERANCE = timedelta(days=183)


@dataclass
class ListEntry:
    """One entry of a directory listing."""
    name: str
    is_dir: bool
    size: int = 0
    modified: Optional[datetime] = None
    permissions: str = ""
    raw: str = ""

    @property
    def is_link(self) -> bool:
        return self.permissions.startswith("l")


def parse_list_line(line: str, now: Optional[datetime] = None) -> Optional[ListEntry]:
    """
    Parse one line of a Unix-style listing.

    Args:
        line: Listing line
        now: Reference time for entries without a year

    Returns:
        ListEntry, or None for lines that are not entries
    """
    line = line.rstrip("\r\n")
    match = ENTRY_PATTERN.match(line)
    if match is None:
        return None

    fields, name = match.groups()
    permissions, _links, _owner, _group, size_text, month, day, clock = fields.split()
    if permissions.startswith("l") and " -> " in name:
        name = name.split(" -> ", 1)[0]
    if name in (".", ".."):
        return None

    try:
        size = max(0, int(size_text))
    except ValueError:
        logger.debug(f"Unparsable size {size_text!r} for {name!r}")
        size = 0

    return ListEntry(
        name=name,
        is_dir=permissions.startswith("d"),
        size=size,
        modified=_parse_timestamp(month, day, clock, now),
        permissions=permissions,
        raw=line,
    )


def _parse_timestamp(
    month: str,
    day: str,
    clock: str,
    now: Optional[datetime] = None
) -> Optional[datetime]:
    month_number = MONTHS.get(month[:3].lower())
    if month_number is None:
        return None

    now = now or datetime.now()
    try:
        if ":" in clock:
            hour, minute = (int(n) for n in clock.split(":", 1))
            stamp = datetime(now.year, month_number, int(day), hour, minute)
            if stamp - now > FUTURE_TOLERANCE:
                stamp = stamp.replace(year=now.year - 1)
            return stamp
        return datetime(int(clock), month_number, int(day))
    except ValueError:
        return None


def parse_listing(text: str, now: Optional[datetime] = None) -> List[ListEntry]:
    """
    Parse a complete LIST payload.

    Malformed lines (including "total N" headers) are skipped.
    """
    entries = []
    for line in text.splitlines():
        entry = parse_list_line(line, now)
        if entry is not None:
            entries.append(entry)
    return entries
