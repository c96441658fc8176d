"""
Page Edit Anchors - Where inserted content is spliced into the page.

Two halves:
- ``parse_insertion_anchor`` reads phrases such as "after the hero" or
  "at the bottom" out of an instruction (used by the classifier).
- ``find_insertion_point`` locates the named anchor element in the
  document and splits the document around it.

An anchor that is named but cannot be found yields None. The caller must
reject the insertion instead of guessing a different spot.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Optional, Tuple

from .locators import (
    Span,
    attribute_value_pattern,
    extract_by_attribute,
    find_first_element,
)
from .models import AnchorPosition, InsertionAnchor, InsertionSplit

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR = InsertionAnchor(position=AnchorPosition.AFTER, anchor="hero")

_ARTICLES = r"(?:the|a|an|my|our|your)\s+"
_RELATIVE_PHRASE = re.compile(
    rf"\b(after|before|below|above|under)\s+(?:{_ARTICLES})?([a-z][\w-]*)",
    re.IGNORECASE,
)
_TOP_PHRASE = re.compile(r"\bat\s+the\s+top\b", re.IGNORECASE)
_BOTTOM_PHRASE = re.compile(r"\bat\s+the\s+(?:bottom|end)\b", re.IGNORECASE)

_POSITION_WORDS = {
    "after": AnchorPosition.AFTER,
    "below": AnchorPosition.AFTER,
    "under": AnchorPosition.AFTER,
    "before": AnchorPosition.BEFORE,
    "above": AnchorPosition.BEFORE,
}


def parse_insertion_anchor(instruction: str) -> InsertionAnchor:
    """
    Read the requested splice point from an insertion instruction.

    Rules, first match wins:
    - "after <word>" / "before <word>" (also below/under/above) name the anchor
    - "at the top" means after the header
    - "at the bottom" / "at the end" means before the footer
    - anything else defaults to after the hero

    Example:
        parse_insertion_anchor("add a testimonials section after the hero")
        # InsertionAnchor(position=AFTER, anchor="hero")
    """
    match = _RELATIVE_PHRASE.search(instruction)
    if match:
        position = _POSITION_WORDS[match.group(1).lower()]
        return InsertionAnchor(position=position, anchor=match.group(2).lower())

    if _TOP_PHRASE.search(instruction):
        return InsertionAnchor(position=AnchorPosition.AFTER, anchor="header")

    if _BOTTOM_PHRASE.search(instruction):
        return InsertionAnchor(position=AnchorPosition.BEFORE, anchor="footer")

    return DEFAULT_ANCHOR


# =============================================================================
# ANCHOR ELEMENT MATCHERS
# =============================================================================


def _attribute_matcher(*keywords: str) -> Callable[[str], Optional[Span]]:
    pattern = attribute_value_pattern(keywords)

    def matcher(html: str) -> Optional[Span]:
        return extract_by_attribute(html, pattern)

    return matcher


def _hero_matcher(html: str) -> Optional[Span]:
    span = extract_by_attribute(html, attribute_value_pattern(["hero", "banner"]))
    if span:
        return span
    # Generated pages open with the hero, so the first section after the header stands in
    header = find_first_element(html, "header")
    return find_first_element(html, "section", start=header[1] if header else 0)


def _tag_matcher(tag: str) -> Callable[[str], Optional[Span]]:
    def matcher(html: str) -> Optional[Span]:
        return find_first_element(html, tag)

    return matcher


_NAMED_ANCHORS: Tuple[Tuple[Tuple[str, ...], Callable[[str], Optional[Span]]], ...] = (
    (("hero", "banner"), _hero_matcher),
    (("features", "feature"), _attribute_matcher("feature")),
    (("pricing", "prices", "price"), _attribute_matcher("pricing", "price")),
    (("testimonials", "testimonial", "reviews"), _attribute_matcher("testimonial")),
    (("footer",), _tag_matcher("footer")),
    (("header", "nav", "navigation"), _tag_matcher("header")),
)

ANCHOR_MATCHERS: Dict[str, Callable[[str], Optional[Span]]] = {
    name: matcher for names, matcher in _NAMED_ANCHORS for name in names
}


def locate_anchor(html: str, anchor_name: str) -> Optional[Span]:
    """
    Span of the element an anchor name refers to.

    Named anchors use dedicated matchers; any other name is matched as a
    substring of a section's (or div's) class or id.
    """
    name = (anchor_name or "").strip().lower()
    if not name:
        return None

    matcher = ANCHOR_MATCHERS.get(name)
    if matcher is not None:
        return matcher(html)

    return extract_by_attribute(html, attribute_value_pattern([name]))


def find_insertion_point(
    html: str,
    anchor_name: str,
    position: AnchorPosition = AnchorPosition.AFTER,
) -> Optional[InsertionSplit]:
    """
    Split the document around an anchor element.

    Args:
        html: Full document
        anchor_name: Anchor name from the classification (e.g. "hero", "pricing")
        position: AFTER splits right after the closing tag,
                  BEFORE splits right before the opening tag

    Returns:
        InsertionSplit, or None if the anchor cannot be located
    """
    position = AnchorPosition(position)
    span = locate_anchor(html, anchor_name)
    if span is None:
        logger.warning(f"Insertion anchor '{anchor_name}' not found in document")
        return None

    cut = span[1] if position == AnchorPosition.AFTER else span[0]
    logger.debug(
        f"Insertion point {position.value} '{anchor_name}' at offset {cut}"
    )
    return InsertionSplit(before_text=html[:cut], after_text=html[cut:])
