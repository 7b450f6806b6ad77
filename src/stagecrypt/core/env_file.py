"""Parsing and in-place rewriting of ``KEY=value`` env file lines.

Only assignment lines are interpreted. Comments, blank lines, ordering and
untargeted variables pass through untouched when lines are rewritten.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from stagecrypt.security.envelope import is_envelope

logger = logging.getLogger(__name__)

ENV_VAR_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class EnvironmentVariableRecord:
    key: str
    value: str
    raw_line: str
    line_number: int

    @property
    def is_encrypted(self) -> bool:
        return is_envelope(self.value.strip())

    @property
    def is_empty(self) -> bool:
        return not self.value.strip()

    def __repr__(self) -> str:
        # values are secrets; keep them out of reprs and log lines
        return f"EnvironmentVariableRecord(key={self.key!r}, line_number={self.line_number})"


def parse_line(line: str, line_number: Optional[int] = None) -> Optional[EnvironmentVariableRecord]:
    """
    Parse one line into a record.

    Returns None for blank lines, comments, lines without '=' and lines whose
    key is not a valid variable name (the latter logs a warning).
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None

    key, _, value = stripped.partition("=")
    key = key.strip()
    if not key or not ENV_VAR_KEY_PATTERN.match(key):
        where = f" at line {line_number}" if line_number else ""
        logger.warning("Invalid environment variable key format: '%s'%s", key, where)
        return None

    return EnvironmentVariableRecord(key=key, value=value, raw_line=line, line_number=line_number or 0)


def extract_variables(lines: List[str]) -> Dict[str, EnvironmentVariableRecord]:
    """
    Parse all lines into an ordered key -> record mapping.

    A duplicate key keeps its first position in the mapping but takes the
    value of its last occurrence; every duplicate is logged.
    """
    variables: Dict[str, EnvironmentVariableRecord] = {}
    for line_number, line in enumerate(lines, start=1):
        record = parse_line(line, line_number)
        if record is None:
            continue
        if record.key in variables:
            logger.warning(
                "Duplicate environment variable '%s' found at line %d", record.key, line_number
            )
        variables[record.key] = record

    logger.debug("Extracted %d environment variables", len(variables))
    return variables


def find_variable(
    variables: Dict[str, EnvironmentVariableRecord], lookup: str
) -> Optional[EnvironmentVariableRecord]:
    """Match ``lookup`` against keys first, then against current values."""
    if lookup in variables:
        return variables[lookup]
    for record in variables.values():
        if record.value.strip() == lookup:
            return record
    return None


def update_lines(lines: List[str], key: str, value: str) -> List[str]:
    """
    Return a copy of ``lines`` with every ``KEY=`` line set to ``value``.

    Duplicates are all rewritten so no stale plaintext assignment survives.
    When no line assigns ``key`` the assignment is appended. Lines are later
    joined with '\\n', so appending after a trailing empty element reuses it
    and the file keeps ending in a newline.
    """
    prefix = f"{key}="
    assignment = f"{key}={value}"
    updated = list(lines)
    matched = False
    for index, line in enumerate(updated):
        if line.strip().startswith(prefix):
            updated[index] = assignment
            matched = True
    if matched:
        return updated

    if updated and updated[-1] == "":
        updated[-1] = assignment
        updated.append("")
    else:
        updated.append(assignment)
    logger.debug("Added new environment variable: %s", key)
    return updated
