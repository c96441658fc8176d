"""
Page Edit Classifier - Keyword-based interpretation of edit instructions.

This module provides the EditRequestClassifier class that turns a free-text
instruction into an EditClassification. All rules are plain keyword checks
against the lower-cased instruction, kept in ordered tables so the
precedence between overlapping keywords is visible in one place.

Classification never raises: any internal failure produces the
conservative full-page classification so the caller can always fall back
to a full-document edit.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Pattern, Sequence, Tuple

from .anchors import parse_insertion_anchor
from .models import Complexity, EditClassification, EditType, TargetSection
from .text_utils import sanitize_instruction

logger = logging.getLogger(__name__)


# =============================================================================
# RULE TABLES
# =============================================================================

# First match wins. "heading"/"title" must stay above "color"/"background":
# "change all headings to blue color" is a heading edit, not a style edit.
TARGET_SECTION_RULES: Tuple[Tuple[Tuple[str, ...], TargetSection], ...] = (
    (("hero", "banner"), TargetSection.HERO),
    (("header", "nav"), TargetSection.HEADER),
    (("footer",), TargetSection.FOOTER),
    (("form", "contact"), TargetSection.FORM),
    (("image", "picture", "photo"), TargetSection.IMAGE),
    (("button",), TargetSection.BUTTON),
    (("heading", "title"), TargetSection.HEADING),
    (("color", "background"), TargetSection.STYLE),
    (("price", "pricing"), TargetSection.PRICING),
    (("text", "paragraph"), TargetSection.TEXT),
)

# "add" is matched as a word so "padding" or "address" never count as additions
ADD_WORD: Pattern = re.compile(r"\badd(?:s|ed|ing)?\b")
MULTI_TARGET_WORDS: Pattern = re.compile(r"\b(?:all|every|each)\b")
INSERTION_PHRASES: Pattern = re.compile(
    r"\b(?:add(?:s|ed|ing)?|insert(?:s|ed|ing)?|create\s+(?:a\s+)?new|include\s+(?:a\s+)?new)\b"
)

STYLE_KEYWORDS: Sequence[str] = ("color", "background", "font", "size")
IMAGE_NOUNS: Sequence[str] = ("image", "picture", "photo")
IMAGE_ACTIONS: Sequence[str] = ("change", "replace", "update")
HIGH_COMPLEXITY_WORDS: Sequence[str] = ("complete", "entire")

HIGH_COMPLEXITY_LENGTH = 200
MEDIUM_COMPLEXITY_LENGTH = 100


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


class EditRequestClassifier:
    """
    Turns an instruction plus the current page into an EditClassification.

    Example:
        classifier = EditRequestClassifier()
        result = classifier.classify("make the header background blue", html)
        result.target_section  # TargetSection.HEADER
    """

    def __init__(self, max_instruction_length: int = 2000):
        self.max_instruction_length = max_instruction_length

    def classify(self, instruction: str, document: str = "") -> EditClassification:
        """
        Classify an edit instruction.

        Args:
            instruction: Raw user instruction (sanitized here as well)
            document: Current page; only used for diagnostics

        Returns:
            EditClassification; the full-page fallback on any internal error
        """
        try:
            text = sanitize_instruction(
                instruction, max_length=self.max_instruction_length
            ).lower()
            return self._classify_text(text)
        except Exception as e:
            logger.error(
                f"Edit classification failed (document {len(document or '')} chars), "
                f"using full-page fallback: {e}"
            )
            return EditClassification.fallback()

    def _classify_text(self, text: str) -> EditClassification:
        is_multi_target = self.is_multi_target(text)
        is_insertion = self.is_insertion(text)
        target_section = self.detect_target_section(text)

        classification = EditClassification(
            target_section=target_section,
            target_type=target_section if is_multi_target else None,
            element_selector=None,
            edit_type=self.detect_edit_type(text),
            complexity=self.estimate_complexity(text, is_multi_target, is_insertion),
            is_style_only=self.is_style_only(text),
            is_image_only=self.is_image_only(text),
            is_multi_target=is_multi_target,
            is_insertion=is_insertion,
            insertion_anchor=parse_insertion_anchor(text) if is_insertion else None,
        )
        logger.debug(f"Classified instruction: {classification.to_dict()}")
        return classification

    # =========================================================================
    # INDIVIDUAL RULES
    # =========================================================================

    @staticmethod
    def is_multi_target(text: str) -> bool:
        """Whole-word all/every/each ("overall" does not count)."""
        return bool(MULTI_TARGET_WORDS.search(text))

    @staticmethod
    def is_insertion(text: str) -> bool:
        return bool(INSERTION_PHRASES.search(text))

    @staticmethod
    def detect_target_section(text: str) -> TargetSection:
        for keywords, section in TARGET_SECTION_RULES:
            if _contains_any(text, keywords):
                return section
        return TargetSection.SPECIFIC_ELEMENT

    @staticmethod
    def detect_edit_type(text: str) -> EditType:
        if "change color" in text or "make it" in text:
            return EditType.STYLE_CHANGE
        if ADD_WORD.search(text) or "include" in text:
            return EditType.ADDITION
        if "remove" in text or "delete" in text:
            return EditType.REMOVAL
        if "rewrite" in text or "rephrase" in text:
            return EditType.CONTENT_CHANGE
        if "image" in text and "change" in text:
            return EditType.IMAGE_REPLACEMENT
        return EditType.MODIFICATION

    @staticmethod
    def estimate_complexity(
        text: str, is_multi_target: bool = False, is_insertion: bool = False
    ) -> Complexity:
        # Multi-target and insertion edits are always medium, regardless of length
        if is_multi_target or is_insertion:
            return Complexity.MEDIUM
        if len(text) > HIGH_COMPLEXITY_LENGTH or _contains_any(text, HIGH_COMPLEXITY_WORDS):
            return Complexity.HIGH
        if len(text) > MEDIUM_COMPLEXITY_LENGTH:
            return Complexity.MEDIUM
        return Complexity.LOW

    @staticmethod
    def is_style_only(text: str) -> bool:
        return (
            _contains_any(text, STYLE_KEYWORDS)
            and not ADD_WORD.search(text)
            and "image" not in text
        )

    @staticmethod
    def is_image_only(text: str) -> bool:
        """Image swap requests go to the manual picker, never to the generator."""
        return _contains_any(text, IMAGE_NOUNS) and _contains_any(text, IMAGE_ACTIONS)


_default_classifier: Optional[EditRequestClassifier] = None


def classify(instruction: str, document: str = "") -> EditClassification:
    """Classify with a shared default classifier."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = EditRequestClassifier()
    return _default_classifier.classify(instruction, document)
