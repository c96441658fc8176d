"""
Tests for Page Edit version records and the json/config helpers they rely on.
"""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import patch
import os

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import json_utils
from config import Config
from page_edit import (
    EditRequestClassifier,
    EditType,
    TargetSection,
    create_version_metadata,
)


# =============================================================================
# TESTS: create_version_metadata
# =============================================================================

class TestVersionMetadata:
    """Audit record for accepted edits."""

    def test_fields_copied_from_classification(self):
        classification = EditRequestClassifier().classify("add a pricing section after the hero")
        version = create_version_metadata("add a pricing section after the hero", classification)

        assert version.change_description == "add a pricing section after the hero"
        assert version.target_section == TargetSection.HERO
        assert version.edit_type == EditType.ADDITION
        assert version.is_insertion is True
        assert version.is_multi_target is False

    def test_description_truncated(self):
        classification = EditRequestClassifier().classify("make it pop")
        version = create_version_metadata("x" * 900, classification)
        assert len(version.change_description) == 500

        short = create_version_metadata("x" * 900, classification, max_description_length=20)
        assert len(short.change_description) == 20

    def test_timestamp_is_utc_iso(self):
        classification = EditRequestClassifier().classify("make it pop")
        version = create_version_metadata("make it pop", classification)
        parsed = datetime.fromisoformat(version.timestamp)
        assert parsed.utcoffset().total_seconds() == 0

    def test_to_json_uses_snake_case_and_enum_values(self):
        classification = EditRequestClassifier().classify("make all buttons green")
        data = json_utils.loads(create_version_metadata("make all buttons green", classification).to_json())

        assert set(data) == {
            "change_description",
            "target_section",
            "edit_type",
            "complexity",
            "is_multi_target",
            "is_insertion",
            "timestamp",
        }
        assert data["target_section"] == "button"
        assert data["complexity"] == "medium"
        assert data["is_multi_target"] is True


# =============================================================================
# TESTS: supporting modules
# =============================================================================

class TestJsonUtils:
    def test_dumps_returns_str(self):
        assert json_utils.dumps({"a": 1}) == '{"a":1}'

    def test_indent(self):
        assert json_utils.dumps({"a": 1}, indent=2) == '{\n  "a": 1\n}'

    def test_default_for_unknown_types(self):
        class Opaque:
            def __str__(self):
                return "opaque"

        assert json_utils.dumps({"v": Opaque()}, default=str) == '{"v":"opaque"}'


class TestConfigOverrides:
    """Environment overrides for the page edit settings."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Config().PAGE_EDIT
        assert settings.model == "claude-sonnet-4"
        assert settings.max_image_drop == 2
        assert settings.min_size_ratio == 0.7
        assert settings.form_marker == "data-sento-form"

    def test_valid_overrides_applied(self):
        env = {
            "PAGE_EDIT_MODEL": "gpt-4o",
            "PAGE_EDIT_MAX_IMAGE_DROP": "4",
            "PAGE_EDIT_MIN_SIZE_RATIO": "0.5",
            "PAGE_EDIT_PARALLEL_SECTIONS": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Config().PAGE_EDIT
        assert settings.model == "gpt-4o"
        assert settings.max_image_drop == 4
        assert settings.min_size_ratio == 0.5
        assert settings.parallel_sections is False

    def test_malformed_overrides_ignored(self):
        env = {
            "PAGE_EDIT_MAX_TOKENS": "lots",
            "PAGE_EDIT_MIN_SIZE_RATIO": "1.5",
            "PAGE_EDIT_MAX_SECTION_DROP": "-1",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Config().PAGE_EDIT
        assert settings.max_tokens == 8000
        assert settings.min_size_ratio == 0.7
        assert settings.max_section_drop == 1
