"""
Page Edit Versioning - Audit records for accepted edits.

The engine never stores versions itself. ``create_version_metadata`` builds
the record and the caller hands it to whatever version store it uses.
"""

from __future__ import annotations

from datetime import datetime, timezone

from .models import EditClassification, VersionMetadata

DEFAULT_DESCRIPTION_LENGTH = 500


def create_version_metadata(
    instruction: str,
    classification: EditClassification,
    max_description_length: int = DEFAULT_DESCRIPTION_LENGTH,
) -> VersionMetadata:
    """
    Build the version record for an accepted edit.

    Args:
        instruction: Sanitized instruction that produced the edit
        classification: Its classification
        max_description_length: Truncation limit for ``change_description``

    Returns:
        VersionMetadata stamped with the current UTC time
    """
    return VersionMetadata(
        change_description=(instruction or "")[:max_description_length],
        target_section=classification.target_section,
        edit_type=classification.edit_type,
        complexity=classification.complexity,
        is_multi_target=classification.is_multi_target,
        is_insertion=classification.is_insertion,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
