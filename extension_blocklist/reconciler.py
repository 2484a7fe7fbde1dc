"""
Extension name normalization and reconciliation

Maps a raw, comma-separated user submission onto the current list of known
extensions: which fixed entries get enabled and which custom entries get
created. Everything here is pure; persistence is left to the caller.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

from extension_blocklist.models import ExtensionKind

MAX_CUSTOM_EXTENSIONS = 200
MAX_NAME_LENGTH = 20

VALID_NAME_PATTERN = re.compile(r'^[a-z0-9]+$')


class RejectReason(str, Enum):
    EMPTY_INPUT = 'EMPTY_INPUT'
    TOO_LONG = 'TOO_LONG'
    INVALID_CHARS = 'INVALID_CHARS'
    CUSTOM_CAP_REACHED = 'CUSTOM_CAP_REACHED'
    ALL_DUPLICATE = 'ALL_DUPLICATE'


@dataclass
class Rejected:
    reason: RejectReason
    names: List[str] = field(default_factory=list)
    max_length: int = MAX_NAME_LENGTH
    max_custom: int = MAX_CUSTOM_EXTENSIONS

    @property
    def message(self):
        """User-facing message naming every offending extension"""
        if self.reason == RejectReason.EMPTY_INPUT:
            return 'Enter at least one extension.'
        if self.reason == RejectReason.TOO_LONG:
            return f"Extensions longer than {self.max_length} characters: {', '.join(self.names)}"
        if self.reason == RejectReason.INVALID_CHARS:
            return f"Only lowercase letters and digits are allowed: {', '.join(self.names)}"
        if self.reason == RejectReason.CUSTOM_CAP_REACHED:
            return f'Cannot add more than {self.max_custom} custom extensions.'
        return 'Extension already exists.'


@dataclass
class Accepted:
    enable_fixed_ids: List[int] = field(default_factory=list)
    create_custom_names: List[str] = field(default_factory=list)
    # New names cut by the custom cap; informational, never an error
    dropped_names: List[str] = field(default_factory=list)


ReconciliationResult = Union[Accepted, Rejected]


def normalize_name(raw):
    """
    Normalize a single extension token

    Args:
        raw: Raw token, e.g. ' .TXT '

    Returns:
        str: Trimmed, lowercased name without a leading dot ('txt')
    """
    name = raw.strip()
    if name.startswith('.'):
        name = name[1:]
    return name.lower()


def parse_candidates(raw_input):
    """
    Split a comma-separated submission into unique normalized names

    Args:
        raw_input: Raw user input

    Returns:
        list: Names in order of first appearance, empties dropped
    """
    candidates = []
    seen = set()

    for token in (raw_input or '').split(','):
        name = normalize_name(token)
        if name and name not in seen:
            seen.add(name)
            candidates.append(name)

    return candidates


def find_too_long(names, max_length=MAX_NAME_LENGTH):
    """Return every name longer than max_length, in input order"""
    return [name for name in names if len(name) > max_length]


def find_invalid_chars(names):
    """Return every name outside [a-z0-9]+, in input order"""
    return [name for name in names if not VALID_NAME_PATTERN.match(name)]


def reconcile(known_extensions, raw_input,
              max_custom=MAX_CUSTOM_EXTENSIONS, max_length=MAX_NAME_LENGTH):
    """
    Reconcile a raw submission against the known extensions

    Args:
        known_extensions: Current list of ExtensionRecord (fixed and custom)
        raw_input: Comma-separated user input
        max_custom: Maximum number of custom records
        max_length: Maximum name length

    Returns:
        Accepted or Rejected
    """
    candidates = parse_candidates(raw_input)
    if not candidates:
        return Rejected(RejectReason.EMPTY_INPUT, max_length=max_length, max_custom=max_custom)

    # Collect every violation before rejecting; length wins over character class
    too_long = find_too_long(candidates, max_length)
    if too_long:
        return Rejected(RejectReason.TOO_LONG, too_long, max_length=max_length, max_custom=max_custom)

    invalid = find_invalid_chars(candidates)
    if invalid:
        return Rejected(RejectReason.INVALID_CHARS, invalid, max_length=max_length, max_custom=max_custom)

    fixed_list = [ext for ext in known_extensions if ext.kind == ExtensionKind.FIXED]
    custom_list = [ext for ext in known_extensions if ext.kind == ExtensionKind.CUSTOM]
    custom_count = len(custom_list)

    custom_names = {ext.name.lower() for ext in custom_list}
    fixed_ids_by_name = {}
    for ext in fixed_list:
        fixed_ids_by_name.setdefault(ext.name.lower(), ext.id)

    enable_fixed_ids = []
    pending = []

    for name in candidates:
        if name in custom_names:
            continue

        fixed_id = fixed_ids_by_name.get(name)
        if fixed_id is not None:
            if fixed_id not in enable_fixed_ids:
                enable_fixed_ids.append(fixed_id)
            continue

        pending.append(name)

    remain = max(0, max_custom - custom_count)
    create_custom_names = pending[:remain]
    dropped_names = pending[remain:]

    if not enable_fixed_ids and not create_custom_names:
        if custom_count >= max_custom and pending:
            return Rejected(RejectReason.CUSTOM_CAP_REACHED, max_length=max_length, max_custom=max_custom)
        return Rejected(RejectReason.ALL_DUPLICATE, max_length=max_length, max_custom=max_custom)

    return Accepted(
        enable_fixed_ids=enable_fixed_ids,
        create_custom_names=create_custom_names,
        dropped_names=dropped_names
    )
