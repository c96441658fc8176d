"""
Configuration for the Page Edit engine
======================================

Central configuration for the iterative HTML edit pipeline. Values are read
once at import time from the environment (and a local .env file) into the
module-global ``config``. Malformed overrides are ignored and the default
stays in place.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


class PageEditSettings(BaseModel):
    """Generation, integrity and cost settings for page edits."""

    model: str = Field(
        default="claude-sonnet-4",
        description="Model identifier passed to the generation service",
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for edit generation",
    )
    max_tokens: int = Field(
        default=8000,
        ge=1,
        description="Maximum output tokens requested per generation call",
    )
    max_instruction_length: int = Field(
        default=2000,
        ge=1,
        description="Instructions are truncated to this many characters",
    )
    version_description_length: int = Field(
        default=500,
        ge=1,
        description="change_description in version records is truncated to this length",
    )
    style_context_chars: int = Field(
        default=1500,
        ge=0,
        description="Character budget of the style reference in insertion prompts",
    )
    form_marker: str = Field(
        default="data-sento-form",
        description="Attribute that wires forms to the submission handler",
    )
    max_image_drop: int = Field(
        default=2,
        ge=0,
        description="Largest tolerated <img> count drop after a section merge",
    )
    max_section_drop: int = Field(
        default=1,
        ge=0,
        description="Largest tolerated <section> count drop after a section merge",
    )
    min_size_ratio: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Merged pages shorter than this fraction of the original are rejected",
    )
    restore_form_markers: bool = Field(
        default=True,
        description="Re-add lost form markers before validating generated markup",
    )
    parallel_sections: bool = Field(
        default=True,
        description="Send multi-target section prompts concurrently",
    )
    input_cost_per_1m: float = Field(
        default=3.00,
        ge=0.0,
        description="USD per million input tokens, for cost estimates",
    )
    output_cost_per_1m: float = Field(
        default=15.00,
        ge=0.0,
        description="USD per million output tokens, for cost estimates",
    )


def _parse_int(value: Optional[str], minimum: int = 0) -> Optional[int]:
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed >= minimum else None


def _parse_float(value: Optional[str], minimum: float = 0.0,
                 maximum: Optional[float] = None) -> Optional[float]:
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    if parsed < minimum or (maximum is not None and parsed > maximum):
        return None
    return parsed


class Config(BaseModel):
    """Configuration settings for the Page Edit engine."""

    model_config = {"populate_by_name": True}

    PAGE_EDIT: PageEditSettings = Field(
        default_factory=PageEditSettings, description="Page edit pipeline settings"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    VERBOSE: bool = Field(default=False, description="Print pipeline phases to the console")
    EXTRA_VERBOSE: bool = Field(
        default=False, description="Also print full prompts and responses"
    )

    def __init__(self):
        super().__init__()
        self.load_from_environment()

    def load_from_environment(self):
        """Load configuration from environment variables."""
        settings = self.PAGE_EDIT

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", self.LOG_LEVEL).upper()
        self.VERBOSE = os.getenv("PAGE_EDIT_VERBOSE", "false").lower() in _TRUE_VALUES
        self.EXTRA_VERBOSE = os.getenv("PAGE_EDIT_EXTRA_VERBOSE", "false").lower() in _TRUE_VALUES

        settings.model = os.getenv("PAGE_EDIT_MODEL", settings.model)
        settings.form_marker = os.getenv("PAGE_EDIT_FORM_MARKER", settings.form_marker)

        int_overrides = (
            ("PAGE_EDIT_MAX_TOKENS", "max_tokens", 1),
            ("PAGE_EDIT_MAX_INSTRUCTION_LENGTH", "max_instruction_length", 1),
            ("PAGE_EDIT_VERSION_DESCRIPTION_LENGTH", "version_description_length", 1),
            ("PAGE_EDIT_STYLE_CONTEXT_CHARS", "style_context_chars", 0),
            ("PAGE_EDIT_MAX_IMAGE_DROP", "max_image_drop", 0),
            ("PAGE_EDIT_MAX_SECTION_DROP", "max_section_drop", 0),
        )
        for env_name, field_name, minimum in int_overrides:
            parsed = _parse_int(os.getenv(env_name), minimum)
            if parsed is not None:
                setattr(settings, field_name, parsed)

        float_overrides = (
            ("PAGE_EDIT_TEMPERATURE", "temperature", 2.0),
            ("PAGE_EDIT_MIN_SIZE_RATIO", "min_size_ratio", 1.0),
            ("PAGE_EDIT_INPUT_COST_PER_1M", "input_cost_per_1m", None),
            ("PAGE_EDIT_OUTPUT_COST_PER_1M", "output_cost_per_1m", None),
        )
        for env_name, field_name, maximum in float_overrides:
            parsed = _parse_float(os.getenv(env_name), 0.0, maximum)
            if parsed is not None:
                setattr(settings, field_name, parsed)

        restore_override = os.getenv("PAGE_EDIT_RESTORE_FORM_MARKERS")
        if restore_override:
            settings.restore_form_markers = restore_override.lower() in _TRUE_VALUES

        parallel_override = os.getenv("PAGE_EDIT_PARALLEL_SECTIONS")
        if parallel_override:
            settings.parallel_sections = parallel_override.lower() in _TRUE_VALUES


# Global configuration instance
config = Config()
