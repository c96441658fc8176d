"""
Page Edit Models - Data structures for the iterative HTML edit pipeline.

Core Types:
- TargetSection: Which part of the page an instruction is about
- EditType / Complexity: How the instruction wants the page changed
- EditClassification: Structured interpretation of one instruction
- SectionContext: A tag-balanced slice of the page sent to the generator
- InsertionSplit: Document split around an insertion anchor
- MergeResult: Outcome of re-integrating a generated section

Boundary Types (serialized for callers and the version store):
- IntegrityVerdict: Pre/post merge statistics with hard issues and warnings
- VersionMetadata: Audit record for an accepted edit
- EditOutcome: Everything the caller needs after one edit attempt

Per-request records are frozen dataclasses; records that leave the engine
are pydantic models so they can be dumped straight to JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

import json_utils as json


class TargetSection(str, Enum):
    """Part of the page an instruction targets."""

    HEADER = "header"
    HERO = "hero"
    FOOTER = "footer"
    FORM = "form"
    IMAGE = "image"  # Never sent to the generator, see EditFailure.IMAGE_EDIT_REDIRECT
    BUTTON = "button"
    HEADING = "heading"
    STYLE = "style"
    PRICING = "pricing"
    TEXT = "text"
    SPECIFIC_ELEMENT = "specific-element"
    FULL_PAGE = "full-page"


class EditType(str, Enum):
    """Kind of change requested."""

    STYLE_CHANGE = "style-change"
    ADDITION = "addition"
    REMOVAL = "removal"
    CONTENT_CHANGE = "content-change"
    IMAGE_REPLACEMENT = "image-replacement"
    MODIFICATION = "modification"


class Complexity(str, Enum):
    """Estimated complexity of the edit."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnchorPosition(str, Enum):
    """Where inserted content goes relative to its anchor element."""

    BEFORE = "before"
    AFTER = "after"


class PromptShape(str, Enum):
    """The four request shapes sent to the generation service."""

    INSERTION = "insertion"
    MULTI_TARGET_SECTION = "multi-target-section"
    LIGHTWEIGHT = "lightweight"
    FULL_DOCUMENT = "full-document"


class MergeMethod(str, Enum):
    """Strategy that located the old section, in confidence order."""

    EXACT_MATCH = "exact-match"
    WHITESPACE_NORMALIZED = "whitespace-normalized"
    TAG_STRUCTURE = "tag-structure"
    ID_BASED = "id-based"
    FAILED = "failed"


class ValidationMode(str, Enum):
    """Which integrity policy to apply."""

    SECTION = "section"
    FULL_DOCUMENT = "full-document"


class EditFailure(str, Enum):
    """Reasons an edit is not applied. The document is always left unchanged."""

    IMAGE_EDIT_REDIRECT = "image-edit-redirect"
    ANCHOR_NOT_FOUND = "anchor-not-found"
    MERGE_FAILED = "merge-failed"
    INTEGRITY_REJECTED = "integrity-rejected"
    GENERATION_FAILED = "generation-failed"
    EMPTY_RESPONSE = "empty-response"


@dataclass(frozen=True)
class InsertionAnchor:
    """Named section used as a splice point, e.g. (after, "hero")."""

    position: AnchorPosition
    anchor: str

    def to_dict(self) -> Dict[str, str]:
        return {"position": self.position.value, "anchor": self.anchor}


@dataclass(frozen=True)
class EditClassification:
    """
    Structured interpretation of a single edit instruction.

    Created once per instruction and consumed by every downstream step.

    Attributes:
        target_section: Part of the page the instruction is about
        target_type: Element kind to match in every section (multi-target only)
        element_selector: Reserved for explicit selectors, currently always None
        edit_type: Kind of change requested
        complexity: Drives prompt shape selection
        is_style_only: Purely visual change (color, font, size)
        is_image_only: Image swap request, handled outside the generator
        is_multi_target: Instruction says all/every/each
        is_insertion: Instruction asks for new content
        insertion_anchor: Splice point for insertions, None otherwise
    """

    target_section: TargetSection
    edit_type: EditType
    complexity: Complexity
    target_type: Optional[TargetSection] = None
    element_selector: Optional[str] = None
    is_style_only: bool = False
    is_image_only: bool = False
    is_multi_target: bool = False
    is_insertion: bool = False
    insertion_anchor: Optional[InsertionAnchor] = None

    @classmethod
    def fallback(cls) -> "EditClassification":
        """Conservative classification that always routes to a full-document edit."""
        return cls(
            target_section=TargetSection.FULL_PAGE,
            edit_type=EditType.MODIFICATION,
            complexity=Complexity.HIGH,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_section": self.target_section.value,
            "target_type": self.target_type.value if self.target_type else None,
            "element_selector": self.element_selector,
            "edit_type": self.edit_type.value,
            "complexity": self.complexity.value,
            "is_style_only": self.is_style_only,
            "is_image_only": self.is_image_only,
            "is_multi_target": self.is_multi_target,
            "is_insertion": self.is_insertion,
            "insertion_anchor": (
                self.insertion_anchor.to_dict() if self.insertion_anchor else None
            ),
        }


@dataclass(frozen=True)
class SectionContext:
    """
    A substring of the page that starts and ends on matching tag boundaries.

    Attributes:
        html: The element markup, verbatim from the document
        locator_strategy: Which locator produced it (for logs and debugging)
        start: Character offset of the element in the source document
        target_type: Element kind matched inside it (multi-target only)
    """

    html: str
    locator_strategy: str
    start: int = -1
    target_type: Optional[TargetSection] = None

    @property
    def end(self) -> int:
        if self.start < 0:
            return -1
        return self.start + len(self.html)


@dataclass(frozen=True)
class InsertionSplit:
    """Document cut at an anchor; new content goes between the halves."""

    before_text: str
    after_text: str

    def join(self, new_content: str) -> str:
        return f"{self.before_text}{new_content}{self.after_text}"


@dataclass(frozen=True)
class MergeResult:
    """Outcome of replacing one section inside the full document."""

    success: bool
    html: str
    method: MergeMethod


@dataclass(frozen=True)
class ComposedPrompt:
    """
    Payload(s) for the generation service.

    ``prompts[i]`` targets ``sections[i]`` for section-scoped shapes. For the
    full-document and insertion shapes, and for a lightweight prompt that had
    to fall back to the whole page, ``sections`` is empty.
    """

    shape: PromptShape
    prompts: Tuple[str, ...]
    sections: Tuple[SectionContext, ...] = ()

    @property
    def prompt(self) -> str:
        """The first (for most shapes, the only) prompt."""
        return self.prompts[0]

    @property
    def sends_full_document(self) -> bool:
        return self.shape != PromptShape.INSERTION and not self.sections


@dataclass(frozen=True)
class ImagePlaceholder:
    """An ``{{IMAGE_n:description}}`` token emitted by the insertion prompt."""

    index: int
    description: str
    token: str


# =============================================================================
# BOUNDARY MODELS
# =============================================================================


class EditBaseModel(BaseModel):
    """Base model enabling population by field name."""

    model_config = {"populate_by_name": True}


class DocumentStats(EditBaseModel):
    """Tag counts and size of a candidate document."""

    images: int = 0
    sections: int = 0
    scripts: int = 0
    size: str = "0.0KB"


class IntegrityVerdict(EditBaseModel):
    """
    Result of comparing an original document against a merged candidate.

    ``issues`` are hard failures that reject the merge; ``warnings`` are
    reported to the user but never block acceptance.
    """

    valid: bool
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    stats: DocumentStats = Field(default_factory=DocumentStats)


class VersionMetadata(EditBaseModel):
    """Write-only audit record handed to the external version store."""

    change_description: str
    target_section: TargetSection
    edit_type: EditType
    complexity: Complexity
    is_multi_target: bool = False
    is_insertion: bool = False
    timestamp: str

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"))


class EditOutcome(EditBaseModel):
    """
    Caller-visible result of one edit attempt.

    On failure ``document`` is the untouched input and ``errors`` explains why.
    """

    success: bool
    document: str
    failure: Optional[EditFailure] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    classification: Dict[str, Any] = Field(default_factory=dict)
    prompt_shape: Optional[PromptShape] = None
    merge_methods: List[MergeMethod] = Field(default_factory=list)
    requires_manual_image_flow: bool = False
    image_placeholders: List[Dict[str, Any]] = Field(default_factory=list)
    version: Optional[VersionMetadata] = None
    estimated_input_tokens: int = 0
    estimated_output_tokens: int = 0
    estimated_cost: float = 0.0
    execution_time_ms: int = 0
