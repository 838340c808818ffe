"""
Shared filter and mapping primitives used by every extract generator.

All functions are pure; the processors wrap the row filters with logging.
"""

import re
import string
from typing import Callable, Hashable, Iterable, List, Mapping, TypeVar

T = TypeVar('T')

RELEASED = 'released'
WORK_STATES = frozenset({'in work', 'under review'})
OBSOLETE_STATES = frozenset({'obsolete', 'obsolète'})

_ASSORTMENT_NODE = re.compile(r'AN\d{2}-\d{2}-\d{2}')
_PROJECT_CODE = re.compile(r'[A-Z0-9]{5}')
_SITE_CODE = re.compile(r'\(([A-Z0-9]+)\)')
_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def clean_value(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def parse_level(value, default: int = 0) -> int:
    """Leading integer of a Structure Level cell ("2", " 2", "2.0" -> 2); default when absent."""
    match = _LEADING_INT.match(clean_value(value))
    return int(match.group(1)) if match else default


def decrement_letter(letter: str, highest: str = 'I') -> str:
    """
    Step a revision letter back by one, for letters B..highest; A stays A.

    Letters outside A..highest (and anything that is not a single letter)
    are returned unchanged.
    """
    if len(letter) != 1 or letter not in string.ascii_uppercase:
        return letter
    if letter == 'A':
        return 'A'
    if letter > highest:
        return letter
    return chr(ord(letter) - 1)


def compute_revision(version: str, state: str) -> str:
    """
    Revision exported to IFS for a parts reference record.

    Released parts keep their revision; parts In Work or Under Review fall back
    to the previous letter (table F..A); everything else is unchanged.
    """
    clean_version = clean_value(version)
    clean_state = clean_value(state).lower()

    if clean_state == RELEASED:
        return clean_version
    if clean_state in WORK_STATES:
        return decrement_letter(clean_version, highest='F')
    return clean_version


def compute_child_revision(revision: str, state: str) -> str:
    """Revision of a BOM child: verbatim when released, otherwise previous letter (table I..A)."""
    clean_revision = clean_value(revision)
    if clean_value(state).lower() == RELEASED:
        return clean_revision
    return decrement_letter(clean_revision, highest='I')


def is_buy(source) -> bool:
    return clean_value(source).lower() == 'buy'


def filter_by_source(rows: Iterable[Mapping[str, str]], exclude_buy: bool = True) -> List[Mapping[str, str]]:
    """Drop rows whose Source is "Buy" when exclude_buy is set."""
    rows = list(rows)
    if not exclude_buy:
        return rows
    return [row for row in rows if not is_buy(row.get('Source'))]


def deduplicate_by_key(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> List[T]:
    """Keep the first item for each distinct key, in input order."""
    seen = set()
    result: List[T] = []
    for item in items:
        key = key_fn(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def has_classification_pattern(classification: str, pattern: str) -> bool:
    return bool(classification) and pattern in classification


def extract_assortment_node(classification: str) -> str:
    if not classification:
        return ''
    match = _ASSORTMENT_NODE.search(classification)
    return match.group(0) if match else ''


def extract_project_code(context: str) -> str:
    """First five characters of the context when they form an [A-Z0-9]{5} code."""
    context = clean_value(context)
    if len(context) < 5:
        return ''
    code = context[:5]
    return code if _PROJECT_CODE.fullmatch(code) else ''


def extract_site_code(site: str) -> str:
    """Site code inside parentheses: "SAINT GILLES (FR014)" -> "FR014"."""
    match = _SITE_CODE.search(clean_value(site))
    return match.group(1) if match else ''


def extract_contract(site: str) -> str:
    """First five of the last six characters of Site IFS."""
    site = clean_value(site)
    if len(site) < 6:
        return ''
    return site[-6:][:5]


def row_number(row: Mapping[str, str]) -> str:
    return clean_value(row.get('Number'))
