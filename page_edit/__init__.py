"""
Page Edit Module - Iterative, section-scoped edits of generated HTML pages.

A natural-language instruction is classified, the smallest relevant part of
the page is located, a generation prompt is composed for just that part, and
the returned markup is merged back and checked for integrity before the
new page is accepted. Everything except the generation call itself is a
pure function over strings.

Stateless pipeline steps:
    from page_edit import classify, locate_section, compose_prompt, merge, validate

    classification = classify("make the header background blue", html)
    section = locate_section(html, classification)
    composed = compose_prompt(html, instruction, classification)
    result = merge(html, section.html, regenerated_header)
    verdict = validate(html, result.html, ValidationMode.SECTION)

Orchestrated edit (requires a generation service):
    from page_edit import HtmlPageEditor

    editor = HtmlPageEditor(ai_service=ai_service)
    outcome = await editor.apply_edit(html, "add a pricing section after the hero")
"""

from .models import (
    # Enumerations
    TargetSection,
    EditType,
    Complexity,
    AnchorPosition,
    PromptShape,
    MergeMethod,
    ValidationMode,
    EditFailure,
    # Per-request records
    InsertionAnchor,
    EditClassification,
    SectionContext,
    InsertionSplit,
    MergeResult,
    ComposedPrompt,
    ImagePlaceholder,
    # Boundary models
    EditBaseModel,
    DocumentStats,
    IntegrityVerdict,
    VersionMetadata,
    EditOutcome,
)
from .classifier import EditRequestClassifier, classify
from .locators import (
    find_element_end,
    extract_relevant_section,
    extract_sections_for_multi_target,
    locate_section,
)
from .anchors import parse_insertion_anchor, find_insertion_point
from .prompts import (
    compose_prompt,
    select_prompt_shape,
    extract_style_context,
    find_image_placeholders,
    strip_image_placeholders,
)
from .merge import merge, merge_at, insert_section, preserve_critical_attributes
from .validation import (
    validate,
    validate_section_merge,
    validate_edited_html,
    is_complete_document,
)
from .versioning import create_version_metadata
from .text_utils import (
    sanitize_instruction,
    clean_generated_html,
    estimate_tokens,
    estimate_cost,
)
from .editor import HtmlPageEditor

__all__ = [
    # Enumerations
    "TargetSection",
    "EditType",
    "Complexity",
    "AnchorPosition",
    "PromptShape",
    "MergeMethod",
    "ValidationMode",
    "EditFailure",
    # Records
    "InsertionAnchor",
    "EditClassification",
    "SectionContext",
    "InsertionSplit",
    "MergeResult",
    "ComposedPrompt",
    "ImagePlaceholder",
    "EditBaseModel",
    "DocumentStats",
    "IntegrityVerdict",
    "VersionMetadata",
    "EditOutcome",
    # Pipeline steps
    "EditRequestClassifier",
    "classify",
    "find_element_end",
    "extract_relevant_section",
    "extract_sections_for_multi_target",
    "locate_section",
    "parse_insertion_anchor",
    "find_insertion_point",
    "compose_prompt",
    "select_prompt_shape",
    "extract_style_context",
    "find_image_placeholders",
    "strip_image_placeholders",
    "merge",
    "merge_at",
    "insert_section",
    "preserve_critical_attributes",
    "validate",
    "validate_section_merge",
    "validate_edited_html",
    "is_complete_document",
    "create_version_metadata",
    # Text utilities
    "sanitize_instruction",
    "clean_generated_html",
    "estimate_tokens",
    "estimate_cost",
    # Orchestration
    "HtmlPageEditor",
]

__version__ = "1.0.0"
