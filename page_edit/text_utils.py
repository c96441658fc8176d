"""
Page Edit Text Utilities - Instruction sanitizing and generator output cleanup.

This module provides utilities for:
- Stripping prompt-injection control phrases from user instructions
- Cleaning generator responses (code fences, chatty preambles)
- Counting tags and measuring documents for the integrity checks
- Rough token and cost estimates for a prompt/response pair
"""

import math
import re
from typing import Dict

# Control phrases removed from instructions before any processing.
# "IGNORE ..." is dropped up to the end of its line.
_INJECTION_PATTERNS = (
    re.compile(r"IGNORE\s+.*", re.IGNORECASE),
    re.compile(r"SYSTEM\s*:", re.IGNORECASE),
    re.compile(r"```"),
)

_FENCE_PATTERN = re.compile(r"```[a-zA-Z]*[ \t]*\n?")

_LEADING_CHATTER_PATTERNS = (
    r"^Here(?:'s| is) (?:the|your) (?:updated|modified|edited|new|complete|revised) "
    r"(?:HTML|section|element|page|markup|code)[^\n<]*[:\n]\s*",
    r"^(?:Sure|Certainly|Of course)[,!.]?[^\n<]*[:\n]\s*",
)

_TAG_COUNT_PATTERNS: Dict[str, re.Pattern] = {}

CHARS_PER_TOKEN = 4


def sanitize_instruction(instruction: str, max_length: int = 2000) -> str:
    """
    Remove injection-style control sequences from a user instruction.

    Strips "IGNORE ..." (to end of line), "SYSTEM:" and code fence markers,
    trims, and truncates to ``max_length`` characters.

    Raises:
        ValueError: If instruction is not a string
    """
    if not isinstance(instruction, str):
        raise ValueError("Instruction must be a string")

    text = instruction
    for pattern in _INJECTION_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()[:max_length]


def clean_generated_html(response: str) -> str:
    """
    Normalize raw generator output before it is merged.

    The service is told not to fence or annotate its output, but often does
    anyway. Removes every code fence marker (with or without a language tag)
    and common leading chatter such as "Here is the updated HTML:".

    Args:
        response: Raw text returned by the generation service

    Returns:
        Markup only, stripped of surrounding whitespace
    """
    if not response:
        return ""

    text = _FENCE_PATTERN.sub("", response).strip()

    # Only strip chatter that sits in front of the first tag
    if not text.startswith("<"):
        for pattern in _LEADING_CHATTER_PATTERNS:
            text = re.sub(pattern, "", text, count=1, flags=re.IGNORECASE)

    return text.strip()


def count_tags(html: str, tag: str) -> int:
    """Count opening tags of ``tag`` (case-insensitive, whole tag name)."""
    pattern = _TAG_COUNT_PATTERNS.get(tag)
    if pattern is None:
        pattern = re.compile(rf"<{re.escape(tag)}\b", re.IGNORECASE)
        _TAG_COUNT_PATTERNS[tag] = pattern
    return len(pattern.findall(html or ""))


def has_tag(html: str, tag: str) -> bool:
    return count_tags(html, tag) > 0


def format_size(html: str) -> str:
    """Human readable size, e.g. '12.4KB'."""
    return f"{len(html or '') / 1024:.1f}KB"


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters, rounded up."""
    return math.ceil(len(text or "") / CHARS_PER_TOKEN)


def estimate_cost(
    input_tokens: int,
    output_tokens: int,
    input_cost_per_1m: float = 3.00,
    output_cost_per_1m: float = 15.00,
) -> float:
    """Estimated USD cost of one generation call."""
    input_cost = (input_tokens / 1_000_000) * input_cost_per_1m
    output_cost = (output_tokens / 1_000_000) * output_cost_per_1m
    return input_cost + output_cost
