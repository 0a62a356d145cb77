"""Month Labels - Normalization, ordering and arithmetic for "MonthName/Year" labels."""

import logging
import re
import unicodedata
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

# English spellings seen in exports generated with a non-Portuguese console locale
_ENGLISH_NAMES = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

_LABEL_PATTERN = re.compile(r"^\s*([^/]+?)\s*/\s*(\d{4})\s*$")


def _fold(text: str) -> str:
    """Lowercase and strip accents and trailing dots."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).rstrip(".")


def _build_aliases():
    aliases = {}
    for index, name in enumerate(MONTH_NAMES, start=1):
        folded = _fold(name)
        aliases[folded] = index
        aliases[folded[:3]] = index
    for index, name in enumerate(_ENGLISH_NAMES, start=1):
        aliases.setdefault(name, index)
        aliases.setdefault(name[:3], index)
    return aliases


_ALIASES = _build_aliases()


def month_index(name: str) -> Optional[int]:
    """Return the 1-12 index of a month name variant, or None if unrecognized."""
    return _ALIASES.get(_fold(name))


def normalize_month_name(name: str) -> Optional[str]:
    """
    Normalize a month-name spelling variant to its canonical Portuguese name.

    Accent-less, upper/lower case, three-letter abbreviations and English names
    are accepted (e.g. "Marco", "MAR", "mar.", "March" -> "Março").

    Args:
        name: Month name as found in the export

    Returns:
        Canonical month name, or None if the name is not a month
    """
    index = month_index(name)
    if index is None:
        return None
    return MONTH_NAMES[index - 1]


def parse_month_label(label: str) -> Optional[Tuple[str, int, int]]:
    """
    Parse a "MonthName/Year" label.

    Args:
        label: Raw month label

    Returns:
        Tuple of (canonical_label, year, month_index), or None when the label
        does not have a recognizable month name and 4-digit year
    """
    match = _LABEL_PATTERN.match(label or "")
    if not match:
        return None

    index = month_index(match.group(1))
    if index is None:
        return None

    year = int(match.group(2))
    return f"{MONTH_NAMES[index - 1]}/{year}", year, index


def month_sort_key(label: str) -> Tuple[int, int]:
    """Chronological sort key (year, month_index) for a month label."""
    parsed = parse_month_label(label)
    if parsed is None:
        raise ValueError(f"Not a month label: {label!r}")
    _, year, index = parsed
    return year, index


def sort_month_labels(labels: List[str]) -> List[str]:
    """Sort month labels chronologically. Equal keys keep their original order."""
    return sorted(labels, key=month_sort_key)


def next_month_labels(last_label: str, count: int) -> List[str]:
    """
    Generate the labels of the months following a known month.

    Args:
        last_label: Last known month label (e.g. "Dezembro/2024")
        count: Number of labels to generate

    Returns:
        List of canonical month labels, e.g. ["Janeiro/2025", "Fevereiro/2025"]
    """
    parts = last_label.split("/")
    name = parts[0].strip()
    year = int(parts[1].strip()) if len(parts) > 1 and parts[1].strip().isdigit() else 0

    index = month_index(name)
    if index is None:
        logger.warning(f"Unknown month in label '{last_label}', continuing from Janeiro")
        index = 1

    labels = []
    position = index - 1
    for _ in range(count):
        position = (position + 1) % 12
        if position == 0:
            year += 1
        labels.append(f"{MONTH_NAMES[position]}/{year}")

    return labels
