"""
Pattern Compiler Utility

Centralizes regex pattern compilation with consistent flags and ReDoS safety checks.

SECURITY STORY: Feed descriptions and pasted email bodies are untrusted input.
A pattern with nested quantifiers can backtrack catastrophically on crafted
text, so every pattern table in the cleaning pipeline is compiled here and
checked against known ReDoS signatures at import time.

MAINTENANCE WISDOM: When adding a new attribution or call-to-action phrase,
add it to the table in text_cleaning.py; it is compiled through these helpers
automatically.
"""

import re
from typing import List

# Nested or repeated quantifiers on unbounded character classes are the most
# common source of catastrophic backtracking.
_REDOS_SIGNATURES: List[str] = [
    r"(\w+)*",
    r"(\d+)+",
    r"(\s+)*",
    r"(a+)+",
    r"([a-zA-Z]+)*",
    r"(.*)*",
    r"(.+)+",
]


def check_redos_safety(patterns: List[str]) -> None:
    """
    Raise ValueError if any pattern contains a known ReDoS signature.

    This is a substring check against a fixed signature list, not a full
    ReDoS prover. It rejects the common catastrophic forms at import time
    rather than under load.

    Args:
        patterns: List of regex pattern strings to inspect.

    Raises:
        ValueError: If any pattern contains a known ReDoS signature.
    """
    for pattern in patterns:
        for unsafe in _REDOS_SIGNATURES:
            if unsafe in pattern:
                raise ValueError(f"Potential ReDoS in pattern: {pattern!r}")


def compile_patterns(
    patterns: List[str],
    flags: int = re.I,
    validate_redos: bool = True,
) -> re.Pattern:
    """
    Compile a list of regex pattern strings into a single combined OR pattern.

    Each pattern is wrapped in a non-capturing group before joining so that
    top-level alternation precedence is preserved.

    Args:
        patterns: List of regex pattern strings.
        flags: Regex compilation flags (default: ``re.I``).
        validate_redos: If ``True``, run ``check_redos_safety`` before compiling.

    Returns:
        A compiled :class:`re.Pattern` that matches any of the supplied patterns.
    """
    if validate_redos:
        check_redos_safety(patterns)
    parts = [f"(?:{p})" for p in patterns]
    return re.compile("|".join(parts), flags)


def compile_pattern_list(
    patterns: List[str],
    flags: int = re.I,
    validate_redos: bool = True,
) -> List[re.Pattern]:
    """
    Compile each pattern string separately, preserving order.

    Cleaning stages apply their patterns one after another, so a later pattern
    sees the text left by an earlier one. A combined OR pattern cannot express
    that, hence this list form.

    Args:
        patterns: List of regex pattern strings, in application order.
        flags: Regex compilation flags applied to every pattern.
        validate_redos: If ``True``, run ``check_redos_safety`` before compiling.

    Returns:
        List of compiled patterns in the same order as *patterns*.
    """
    if validate_redos:
        check_redos_safety(patterns)
    return [re.compile(p, flags) for p in patterns]


def apply_in_order(patterns: List[re.Pattern], text: str, replacement: str = "") -> str:
    """Run ``pattern.sub(replacement, text)`` for each pattern in turn."""
    for pattern in patterns:
        text = pattern.sub(replacement, text)
    return text
