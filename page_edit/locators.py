"""
Page Edit Locators - Section extraction without a DOM parser.

Everything here is built on one primitive, ``find_element_end``: given the
offset of an opening tag it walks forward counting nested opening and
closing tags of the same name until the depth returns to zero. Each locator
finds a candidate opening tag with a small regex and hands it to the
scanner, so every returned slice is a complete element and never a fragment.

Locators:
1. Tag based (header, footer, style, form)
2. Attribute based (hero/banner, pricing, contact, named anchors)
3. Content based (first section with a button, most headings, a price)
4. Multi-target enumeration of every top-level section that qualifies
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .models import EditClassification, SectionContext, TargetSection

logger = logging.getLogger(__name__)

Span = Tuple[int, int]

# Body-level containers a generated landing page is built from
SECTION_TAGS: Tuple[str, ...] = ("section",)
PAGE_REGION_TAGS: Tuple[str, ...] = ("header", "section", "footer")
ATTRIBUTE_TAGS: Tuple[str, ...] = ("section", "div")

HEADING_PATTERN = re.compile(r"<h[1-6]\b", re.IGNORECASE)
BUTTON_TAG_PATTERN = re.compile(r"<button\b", re.IGNORECASE)
BUTTON_CLASS_PATTERN = re.compile(
    r"""class\s*=\s*["'][^"']*\b(?:btn|button|cta)[\w-]*""", re.IGNORECASE
)
PRICE_PATTERN = re.compile(r"\$\s?\d|\bpric(?:e|es|ing)\b", re.IGNORECASE)
PARAGRAPH_PATTERN = re.compile(r"<p\b", re.IGNORECASE)


# =============================================================================
# BALANCED TAG SCANNER
# =============================================================================


def _tag_token_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"<(/?){re.escape(tag)}\b[^>]*>", re.IGNORECASE)


def tag_name_at(html: str, start: int) -> Optional[str]:
    """Return the lower-cased tag name of the opening tag at ``start``."""
    match = re.match(r"<([a-zA-Z][\w-]*)", html[start:start + 64])
    return match.group(1).lower() if match else None


def find_element_end(html: str, start: int, tag: Optional[str] = None) -> Optional[int]:
    """
    Find the end offset of the element whose opening tag begins at ``start``.

    Tracks the nesting depth of same-named tags until it returns to zero.

    Args:
        html: Full document
        start: Offset of the '<' of the opening tag
        tag: Tag name; read from the document when omitted

    Returns:
        Offset just past the matching closing tag, or None when the element
        is never closed (the caller must not use a partial span)
    """
    tag = tag or tag_name_at(html, start)
    if not tag:
        return None

    depth = 0
    for token in _tag_token_pattern(tag).finditer(html, start):
        is_closing = token.group(1) == "/"
        if is_closing:
            depth -= 1
        elif token.group(0).endswith("/>"):
            if depth == 0:
                return token.end()
            continue
        else:
            depth += 1

        if depth == 0:
            return token.end()
        if depth < 0:
            # Stray closing tag before the opening one
            return None

    logger.debug(f"Unbalanced <{tag}> starting at offset {start}")
    return None


def element_span_at(html: str, start: int) -> Optional[Span]:
    """Span of the complete element whose opening tag starts at ``start``."""
    end = find_element_end(html, start)
    if end is None:
        return None
    return (start, end)


def _opening_tag_pattern(tags: Sequence[str], attribute_pattern: str = "") -> re.Pattern:
    names = "|".join(re.escape(t) for t in tags)
    if attribute_pattern:
        return re.compile(
            rf"<({names})\b[^>]*?{attribute_pattern}[^>]*>", re.IGNORECASE
        )
    return re.compile(rf"<({names})\b[^>]*>", re.IGNORECASE)


def find_first_element(
    html: str, tags: Union[str, Sequence[str]], start: int = 0
) -> Optional[Span]:
    """Span of the first complete element with one of ``tags`` at or after ``start``."""
    if isinstance(tags, str):
        tags = (tags,)
    pattern = _opening_tag_pattern(tags)
    for match in pattern.finditer(html, start):
        span = element_span_at(html, match.start())
        if span:
            return span
    return None


def attribute_value_pattern(
    keywords: Iterable[str], attributes: Iterable[str] = ("class", "id")
) -> str:
    """
    Regex fragment matching an attribute whose value contains a keyword.

    Example:
        attribute_value_pattern(["hero", "banner"])
        # matches class="hero dark" or id='main-banner'
    """
    attrs = "|".join(re.escape(a) for a in attributes)
    words = "|".join(re.escape(k) for k in keywords)
    return rf"""\b(?:{attrs})\s*=\s*["'][^"']*(?:{words})[^"']*["']"""


def extract_by_attribute(
    html: str,
    attribute_pattern: str,
    tags: Sequence[str] = ATTRIBUTE_TAGS,
    start: int = 0,
) -> Optional[Span]:
    """
    Find the first opening tag matching ``attribute_pattern`` and return the
    span of its complete element.

    Args:
        html: Full document
        attribute_pattern: Regex fragment matched inside the opening tag
        tags: Tag names the element may have
        start: Offset to start searching from

    Returns:
        (start, end) span or None when nothing matches or the match is unbalanced
    """
    pattern = _opening_tag_pattern(tags, attribute_pattern)
    for match in pattern.finditer(html, start):
        span = element_span_at(html, match.start())
        if span:
            return span
        logger.debug(f"Attribute match at {match.start()} is not a balanced element")
    return None


def iter_top_level_elements(
    html: str, tags: Sequence[str] = PAGE_REGION_TAGS
) -> List[Span]:
    """
    Enumerate non-nested elements with one of ``tags`` in document order.

    Scanning resumes after each complete element, so a <section> inside a
    <header> is part of the header and not listed on its own.
    """
    pattern = _opening_tag_pattern(tags)
    spans: List[Span] = []
    pos = 0
    while True:
        match = pattern.search(html, pos)
        if not match:
            break
        span = element_span_at(html, match.start())
        if span is None:
            pos = match.end()
            continue
        spans.append(span)
        pos = span[1]
    return spans


def _context(html: str, span: Optional[Span], strategy: str,
             target_type: Optional[TargetSection] = None) -> Optional[SectionContext]:
    if span is None:
        return None
    start, end = span
    return SectionContext(
        html=html[start:end],
        locator_strategy=strategy,
        start=start,
        target_type=target_type,
    )


# =============================================================================
# SECTION PREDICATES
# =============================================================================


def has_button(section_html: str) -> bool:
    return bool(
        BUTTON_TAG_PATTERN.search(section_html)
        or BUTTON_CLASS_PATTERN.search(section_html)
    )


def count_headings(section_html: str) -> int:
    return len(HEADING_PATTERN.findall(section_html))


def has_price(section_html: str) -> bool:
    return bool(PRICE_PATTERN.search(section_html))


def has_paragraph(section_html: str) -> bool:
    return bool(PARAGRAPH_PATTERN.search(section_html))


def section_predicate(target_type: TargetSection) -> Optional[Callable[[str], bool]]:
    """
    Membership test used by multi-target extraction.

    Returns None for targets that cannot be matched per section
    (full-page, specific-element), which sends the edit down the
    single-target path.
    """
    if target_type == TargetSection.BUTTON:
        return has_button
    if target_type == TargetSection.HEADING:
        return lambda s: count_headings(s) > 0
    if target_type == TargetSection.PRICING:
        return has_price
    if target_type == TargetSection.TEXT:
        return has_paragraph
    if target_type in (TargetSection.FULL_PAGE, TargetSection.SPECIFIC_ELEMENT):
        return None

    keyword = target_type.value
    return lambda s: keyword in s.lower()


# =============================================================================
# SINGLE-TARGET LOCATORS
# =============================================================================


def extract_header(html: str) -> Optional[SectionContext]:
    return _context(html, find_first_element(html, "header"), "header-tag")


def extract_footer(html: str) -> Optional[SectionContext]:
    return _context(html, find_first_element(html, "footer"), "footer-tag")


def extract_first_section(html: str) -> Optional[SectionContext]:
    """First <section> after the header (or anywhere, if there is no header)."""
    header = find_first_element(html, "header")
    search_from = header[1] if header else 0
    span = find_first_element(html, SECTION_TAGS, start=search_from)
    if span is None and header is not None:
        span = find_first_element(html, SECTION_TAGS)
    return _context(html, span, "first-section")


def extract_hero(html: str) -> Optional[SectionContext]:
    span = extract_by_attribute(html, attribute_value_pattern(["hero", "banner"]))
    if span:
        return _context(html, span, "hero-attribute")
    logger.debug("No hero/banner marker found, using first section")
    return extract_first_section(html)


def extract_style(html: str) -> Optional[SectionContext]:
    span = find_first_element(html, "style")
    if span:
        return _context(html, span, "style-block")
    # No stylesheet block means the page is styled inline
    first = extract_first_section(html)
    if first is None:
        return None
    return SectionContext(
        html=first.html, locator_strategy="inline-style-section", start=first.start
    )


def extract_button_section(html: str) -> Optional[SectionContext]:
    for span in iter_top_level_elements(html, ("header", "section")):
        if has_button(html[span[0]:span[1]]):
            return _context(html, span, "button-section")
    return None


def extract_heading_section(html: str) -> Optional[SectionContext]:
    """Section with the most heading tags; ties go to the earliest."""
    best: Optional[Span] = None
    best_count = 0
    for span in iter_top_level_elements(html, SECTION_TAGS):
        count = count_headings(html[span[0]:span[1]])
        if count > best_count:
            best, best_count = span, count
    return _context(html, best, "heading-section")


def extract_pricing_section(html: str) -> Optional[SectionContext]:
    for span in iter_top_level_elements(html, SECTION_TAGS):
        if has_price(html[span[0]:span[1]]):
            return _context(html, span, "pricing-section")
    return None


def extract_form_section(html: str) -> Optional[SectionContext]:
    span = extract_by_attribute(html, attribute_value_pattern(["contact"]))
    if span:
        return _context(html, span, "contact-attribute")
    return _context(html, find_first_element(html, "form"), "form-tag")


_SINGLE_TARGET_LOCATORS = {
    TargetSection.HEADER: extract_header,
    TargetSection.FOOTER: extract_footer,
    TargetSection.HERO: extract_hero,
    TargetSection.STYLE: extract_style,
    TargetSection.BUTTON: extract_button_section,
    TargetSection.HEADING: extract_heading_section,
    TargetSection.PRICING: extract_pricing_section,
    TargetSection.FORM: extract_form_section,
}


def extract_relevant_section(
    html: str, target_section: TargetSection
) -> Optional[SectionContext]:
    """
    Smallest complete element relevant to ``target_section``.

    Returns None when the target has no locator or nothing matched; the
    caller then falls back to sending the full document.
    """
    locator = _SINGLE_TARGET_LOCATORS.get(target_section)
    if locator is None:
        return None
    try:
        return locator(html)
    except re.error as e:
        logger.error(f"Section extraction error for {target_section.value}: {e}")
        return None


# =============================================================================
# MULTI-TARGET EXTRACTION
# =============================================================================


def extract_sections_for_multi_target(
    html: str, target_type: TargetSection
) -> List[SectionContext]:
    """
    Every top-level region (header, sections, footer) containing the target.

    Results keep document order and carry ``target_type`` so the prompt can
    tell the generator what to change inside each one.
    """
    predicate = section_predicate(target_type)
    if predicate is None:
        return []

    sections: List[SectionContext] = []
    for span in iter_top_level_elements(html, PAGE_REGION_TAGS):
        chunk = html[span[0]:span[1]]
        if predicate(chunk):
            sections.append(
                SectionContext(
                    html=chunk,
                    locator_strategy=f"multi-target:{target_type.value}",
                    start=span[0],
                    target_type=target_type,
                )
            )

    logger.debug(
        f"Multi-target extraction for {target_type.value}: {len(sections)} section(s)"
    )
    return sections


def locate_section(
    html: str, classification: EditClassification
) -> Union[SectionContext, List[SectionContext], None]:
    """
    Locate what to send to the generator for a classified instruction.

    Returns:
        A list of SectionContext for multi-target instructions that matched at
        least one region, a single SectionContext for single-target ones, or
        None when nothing could be located.
    """
    if classification.is_multi_target:
        target_type = classification.target_type or classification.target_section
        sections = extract_sections_for_multi_target(html, target_type)
        if sections:
            return sections
        logger.info(
            f"No sections matched multi-target '{target_type.value}', "
            f"falling back to single-target extraction"
        )

    section = extract_relevant_section(html, classification.target_section)
    if section is None:
        logger.info(
            f"No section located for '{classification.target_section.value}', "
            f"full document will be used"
        )
    return section
