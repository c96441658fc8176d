"""
Page Edit Merge - Re-integrating generated sections into the full page.

The old section is located in the document by four strategies, tried in
order of confidence until one succeeds:
1. Exact match: the section occurs verbatim
2. Whitespace-normalized: same tokens, any whitespace in between
3. Tag structure: same root tag and attribute string, content may differ
4. Id based: any element carrying the root element's id

Strategies are kept in the ordered ``MERGE_STRATEGIES`` table. Each one only
locates a span; the replacement itself is a plain string splice so
backslashes and group references in generated markup are never interpreted.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Tuple

from .locators import Span, find_element_end
from .models import InsertionSplit, MergeMethod, MergeResult

logger = logging.getLogger(__name__)

DEFAULT_FORM_MARKER = "data-sento-form"

_ROOT_TAG_PATTERN = re.compile(r"<([a-zA-Z][\w-]*)([^>]*)>")
_ID_ATTRIBUTE_PATTERN = re.compile(r"""\bid\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_FORM_TAG_PATTERN = re.compile(r"<form\b[^>]*>", re.IGNORECASE)


# =============================================================================
# LOCATING STRATEGIES
# =============================================================================


def find_exact(document: str, old_section: str) -> Optional[Span]:
    index = document.find(old_section)
    if index == -1:
        return None
    return (index, index + len(old_section))


def find_whitespace_normalized(document: str, old_section: str) -> Optional[Span]:
    """
    Match ``old_section`` with every whitespace run relaxed to ``\\s+``.

    Handles the service re-indenting the document between prompt and merge.
    """
    tokens = old_section.split()
    if not tokens:
        return None
    pattern = r"\s+".join(re.escape(token) for token in tokens)
    match = re.search(pattern, document)
    if not match:
        return None
    return match.span()


def _root_tag(section: str) -> Optional[Tuple[str, str]]:
    match = _ROOT_TAG_PATTERN.match(section.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def _balanced_span(document: str, opening: re.Pattern, tag: str) -> Optional[Span]:
    for match in opening.finditer(document):
        end = find_element_end(document, match.start(), tag)
        if end is not None:
            return (match.start(), end)
    return None


def find_by_tag_structure(document: str, old_section: str) -> Optional[Span]:
    """
    Match an element with the same root tag and attribute string.

    The opening tag is matched literally; the span is then closed with the
    balanced tag scanner so nested same-name elements do not end it early.
    """
    root = _root_tag(old_section)
    if root is None:
        return None
    tag, attributes = root
    opening = re.compile(rf"<{re.escape(tag)}{re.escape(attributes)}>")
    return _balanced_span(document, opening, tag)


def find_by_id(document: str, old_section: str) -> Optional[Span]:
    """Match any element carrying the same id as ``old_section``'s root."""
    root = _root_tag(old_section)
    if root is None:
        return None
    id_match = _ID_ATTRIBUTE_PATTERN.search(root[1])
    if not id_match:
        return None

    element_id = re.escape(id_match.group(1))
    opening = re.compile(
        rf"""<([a-zA-Z][\w-]*)\b[^>]*\bid\s*=\s*["']{element_id}["'][^>]*>""",
        re.IGNORECASE,
    )
    for match in opening.finditer(document):
        end = find_element_end(document, match.start(), match.group(1).lower())
        if end is not None:
            return (match.start(), end)
    return None


MERGE_STRATEGIES: Tuple[Tuple[MergeMethod, Callable[[str, str], Optional[Span]]], ...] = (
    (MergeMethod.EXACT_MATCH, find_exact),
    (MergeMethod.WHITESPACE_NORMALIZED, find_whitespace_normalized),
    (MergeMethod.TAG_STRUCTURE, find_by_tag_structure),
    (MergeMethod.ID_BASED, find_by_id),
)


# =============================================================================
# MERGE
# =============================================================================


def merge(document: str, old_section: str, new_section: str) -> MergeResult:
    """
    Replace ``old_section`` with ``new_section`` inside ``document``.

    Args:
        document: Full page
        old_section: Section as it was sent to the generator
        new_section: Section returned by the generator (already cleaned)

    Returns:
        MergeResult with the first strategy that located the old section, or
        success=False, the unchanged document and method FAILED
    """
    if not old_section or not new_section:
        logger.warning("Merge called with an empty section, nothing replaced")
        return MergeResult(success=False, html=document, method=MergeMethod.FAILED)

    for method, locate in MERGE_STRATEGIES:
        span = locate(document, old_section)
        if span is None:
            continue
        start, end = span
        logger.debug(f"Section located by {method.value} at [{start}:{end}]")
        return MergeResult(
            success=True,
            html=document[:start] + new_section + document[end:],
            method=method,
        )

    logger.warning(
        f"All merge strategies failed for section starting "
        f"'{old_section[:60]}...'"
    )
    return MergeResult(success=False, html=document, method=MergeMethod.FAILED)


def merge_at(document: str, old_section: str, new_section: str, start: int) -> MergeResult:
    """
    Replace ``old_section`` at a known offset, falling back to ``merge``.

    Identical sections elsewhere in the page are never touched as long as
    the offset still points at ``old_section``.
    """
    end = start + len(old_section)
    if old_section and new_section and 0 <= start and document[start:end] == old_section:
        logger.debug(f"Section spliced at known offset [{start}:{end}]")
        return MergeResult(
            success=True,
            html=document[:start] + new_section + document[end:],
            method=MergeMethod.EXACT_MATCH,
        )
    return merge(document, old_section, new_section)


def insert_section(split: InsertionSplit, new_section: str) -> str:
    """Splice a new element between the halves of an insertion split."""
    return split.join(f"\n{new_section.strip()}\n")


def preserve_critical_attributes(
    new_html: str, original_html: str, form_marker: str = DEFAULT_FORM_MARKER
) -> str:
    """
    Restore the form-submission marker on regenerated forms.

    Forms are paired by position. When the original form carried
    ``form_marker`` and its regenerated counterpart lost it, the attribute
    is added back to the opening tag.
    """
    original_forms = _FORM_TAG_PATTERN.findall(original_html or "")
    if not original_forms or form_marker not in original_html:
        return new_html

    new_forms = list(_FORM_TAG_PATTERN.finditer(new_html))
    restored = new_html
    # Walk backwards so earlier offsets stay valid while splicing
    for index in reversed(range(min(len(original_forms), len(new_forms)))):
        if form_marker not in original_forms[index]:
            continue
        match = new_forms[index]
        if form_marker in match.group(0):
            continue
        patched = f'<form {form_marker}="true"' + match.group(0)[len("<form"):]
        restored = restored[:match.start()] + patched + restored[match.end():]
        logger.info(f"Restored {form_marker} on form #{index + 1}")

    return restored
