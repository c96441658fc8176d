"""
Page Edit Validation - Integrity checks between the original and edited page.

Two policies:
- validate_section_merge: after a section was spliced back in. Every
  finding is a hard issue that rejects the merge.
- validate_edited_html: after the generator returned a whole page. Losing
  document structure, page regions or the form marker is a hard issue;
  missing scripts and images are only warnings.

Both are pure functions; the caller keeps the original page whenever
``valid`` is False.
"""

from __future__ import annotations

import logging
import re
from typing import List

from .models import DocumentStats, IntegrityVerdict, ValidationMode
from .text_utils import count_tags, format_size, has_tag

logger = logging.getLogger(__name__)

DEFAULT_FORM_MARKER = "data-sento-form"
DEFAULT_MAX_IMAGE_DROP = 2
DEFAULT_MAX_SECTION_DROP = 1
DEFAULT_MIN_SIZE_RATIO = 0.7

FOOTER_LOST_ISSUE = "Footer element was lost during merge - rejecting"
HEADER_LOST_ISSUE = "Header element was lost during merge - rejecting"

_DOCTYPE_PATTERN = re.compile(r"<!doctype\b", re.IGNORECASE)


def collect_stats(html: str) -> DocumentStats:
    """Tag counts and size of a document."""
    return DocumentStats(
        images=count_tags(html, "img"),
        sections=count_tags(html, "section"),
        scripts=count_tags(html, "script"),
        size=format_size(html),
    )


def has_document_structure(html: str) -> bool:
    """True when a doctype or an <html> root is present."""
    return bool(_DOCTYPE_PATTERN.search(html or "")) or has_tag(html, "html")


def is_complete_document(html: str) -> bool:
    """True for a whole page: doctype, <html> and <body> all present."""
    if not html or not isinstance(html, str):
        return False
    return (
        bool(_DOCTYPE_PATTERN.search(html))
        and has_tag(html, "html")
        and has_tag(html, "body")
    )


def _region_losses(original: str, merged: str) -> List[str]:
    issues = []
    if has_tag(original, "footer") and not has_tag(merged, "footer"):
        issues.append(FOOTER_LOST_ISSUE)
    if has_tag(original, "header") and not has_tag(merged, "header"):
        issues.append(HEADER_LOST_ISSUE)
    return issues


def validate_section_merge(
    original: str,
    merged: str,
    max_image_drop: int = DEFAULT_MAX_IMAGE_DROP,
    max_section_drop: int = DEFAULT_MAX_SECTION_DROP,
    min_size_ratio: float = DEFAULT_MIN_SIZE_RATIO,
) -> IntegrityVerdict:
    """
    Check a document after a section merge.

    Args:
        original: Page before the merge
        merged: Page after the merge
        max_image_drop: Largest tolerated drop in <img> count
        max_section_drop: Largest tolerated drop in <section> count
        min_size_ratio: Smallest tolerated merged/original length ratio

    Returns:
        IntegrityVerdict; ``warnings`` is always empty for this policy
    """
    before = collect_stats(original)
    after = collect_stats(merged)
    issues: List[str] = []

    image_drop = before.images - after.images
    if image_drop > max_image_drop:
        issues.append(f"Too many images lost: {before.images} -> {after.images}")

    section_drop = before.sections - after.sections
    if section_drop > max_section_drop:
        issues.append(f"Too many sections lost: {before.sections} -> {after.sections}")

    if after.scripts < before.scripts:
        issues.append(f"Scripts lost: {before.scripts} -> {after.scripts}")

    issues.extend(_region_losses(original, merged))

    if original and len(merged) < len(original) * min_size_ratio:
        issues.append(
            f"Suspicious size reduction: {before.size} -> {after.size}"
        )

    if issues:
        logger.warning(f"Section merge rejected: {issues}")

    return IntegrityVerdict(valid=not issues, issues=issues, warnings=[], stats=after)


def validate_edited_html(
    original: str,
    edited: str,
    form_marker: str = DEFAULT_FORM_MARKER,
) -> IntegrityVerdict:
    """
    Check a page that the generator returned in full.

    Returns:
        IntegrityVerdict with hard ``issues`` and advisory ``warnings``
    """
    before = collect_stats(original)
    after = collect_stats(edited)
    issues: List[str] = []
    warnings: List[str] = []

    if form_marker in original and form_marker not in edited:
        issues.append("Form handler attribute lost")

    if not has_document_structure(edited):
        issues.append("Missing HTML document structure")

    issues.extend(_region_losses(original, edited))

    if after.scripts < before.scripts:
        warnings.append(f"Script count changed: {before.scripts} -> {after.scripts}")

    if after.images < before.images - 1:
        warnings.append(f"Image count reduced: {before.images} -> {after.images}")

    if issues:
        logger.warning(f"Edited page rejected: {issues}")
    elif warnings:
        logger.info(f"Edited page accepted with warnings: {warnings}")

    return IntegrityVerdict(valid=not issues, issues=issues, warnings=warnings, stats=after)


def validate(
    original: str,
    merged: str,
    mode: ValidationMode = ValidationMode.SECTION,
    **thresholds,
) -> IntegrityVerdict:
    """
    Dispatch to the policy for ``mode``.

    Extra keyword arguments are passed to the selected validator
    (thresholds for SECTION, ``form_marker`` for FULL_DOCUMENT).
    """
    mode = ValidationMode(mode)
    if mode == ValidationMode.FULL_DOCUMENT:
        return validate_edited_html(original, merged, **thresholds)
    return validate_section_merge(original, merged, **thresholds)
