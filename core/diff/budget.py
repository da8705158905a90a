"""
Keeps diff text sent to remote models within a token budget.

Token counts are estimated at four characters per token. A multi-file diff
is split on its ``diff --git`` headers and the budget is shared between the
sections: small sections are kept whole and what they leave unused goes to
the larger ones. Cuts fall on a whitespace boundary where one exists.
"""
import re
from typing import List

from utils.logger import logger

CHARS_PER_TOKEN = 4
TRUNCATION_MARKER = "\n... (diff truncated)\n"

_SECTION_START = re.compile(r"^(?=diff --git )", re.MULTILINE)


def char_budget(max_tokens: int) -> int:
    return max(max_tokens, 0) * CHARS_PER_TOKEN


def truncate_text(text: str, max_chars: int) -> str:
    """
    Cuts ``text`` to at most ``max_chars`` characters, backing up to the last
    whitespace so no word is split. Text that already fits is returned as is.
    """
    if len(text) <= max_chars:
        return text
    if max_chars <= 0:
        return ""
    head = text[:max_chars]
    cut = max(head.rfind(" "), head.rfind("\n"), head.rfind("\t"))
    return head[:cut] if cut > 0 else head


def split_sections(raw_diff: str) -> List[str]:
    """Splits a diff before each ``diff --git`` header; leading metadata stays a section of its own."""
    return [section for section in _SECTION_START.split(raw_diff) if section]


def fit_diff(raw_diff: str, max_tokens: int) -> str:
    """
    Returns ``raw_diff`` trimmed so that it fits into ``max_tokens``.

    Sections keep their original order. A cut section ends with a short
    marker that counts against its share; a section whose share cannot hold
    the marker is dropped.
    """
    budget = char_budget(max_tokens)
    if len(raw_diff) <= budget:
        return raw_diff

    sections = split_sections(raw_diff)
    allowances = [0] * len(sections)
    remaining = budget
    # Smallest first, so unused share rolls over to the larger sections.
    order = sorted(range(len(sections)), key=lambda i: len(sections[i]))
    for position, index in enumerate(order):
        share = remaining // (len(order) - position)
        allowances[index] = min(len(sections[index]), share)
        remaining -= allowances[index]

    trimmed = []
    for section, allowance in zip(sections, allowances):
        if len(section) <= allowance:
            trimmed.append(section)
            continue
        kept = truncate_text(section, allowance - len(TRUNCATION_MARKER))
        if kept:
            trimmed.append(kept + TRUNCATION_MARKER)

    logger.debug(f"Diff of {len(raw_diff)} chars trimmed to a {budget} char budget across {len(sections)} sections")
    return "".join(trimmed)
