"""
Tests for Page Edit insertion anchors.

These tests verify:
1. AFTER splits right after the anchor's closing tag, BEFORE right before its opening tag
2. Named anchors use dedicated matchers, other names match class/id
3. A named anchor that cannot be found yields None
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from page_edit import AnchorPosition, InsertionSplit, find_insertion_point
from page_edit.anchors import locate_anchor

from conftest import LANDING_PAGE, SIMPLE_PAGE


# =============================================================================
# TEST DATA
# =============================================================================

NO_HERO_MARKER_PAGE = (
    "<header>Nav</header>"
    "<section>Intro</section>"
    "<section>Second</section>"
    "<footer>End</footer>"
)

CUSTOM_ID_PAGE = (
    '<section class="hero">Hi</section>'
    '<div id="faq-block"><div>Q</div><div>A</div></div>'
    "<footer>End</footer>"
)


# =============================================================================
# TESTS: find_insertion_point
# =============================================================================

class TestFindInsertionPoint:
    """Document splits around anchors."""

    def test_after_hero_splits_after_closing_tag(self):
        """The hero scenario splits right after </section>."""
        split = find_insertion_point(SIMPLE_PAGE, "hero", AnchorPosition.AFTER)

        assert isinstance(split, InsertionSplit)
        assert split.before_text == '<header>H</header><section class="hero">Hi</section>'
        assert split.after_text == "<footer>F</footer>"
        assert split.before_text + split.after_text == SIMPLE_PAGE

    def test_before_footer_splits_before_opening_tag(self):
        split = find_insertion_point(SIMPLE_PAGE, "footer", AnchorPosition.BEFORE)
        assert split.after_text == "<footer>F</footer>"

    def test_position_accepts_plain_string(self):
        """Position values may be passed as their string form."""
        split = find_insertion_point(SIMPLE_PAGE, "header", "after")
        assert split.before_text == "<header>H</header>"

    def test_join_places_content_between_halves(self):
        split = find_insertion_point(SIMPLE_PAGE, "hero")
        joined = split.join("<section>New</section>")
        assert '</section><section>New</section><footer>' in joined

    def test_named_anchor_missing_returns_none(self):
        """An explicitly named but absent anchor is a hard miss."""
        assert find_insertion_point(SIMPLE_PAGE, "testimonials") is None

    def test_unknown_name_missing_returns_none(self):
        assert find_insertion_point(SIMPLE_PAGE, "faq") is None

    def test_empty_name_returns_none(self):
        assert find_insertion_point(SIMPLE_PAGE, "") is None


# =============================================================================
# TESTS: anchor matchers
# =============================================================================

class TestLocateAnchor:
    """Named and generic anchor matching."""

    @pytest.mark.parametrize("name,expected_prefix", [
        ("hero", '<section class="hero"'),
        ("banner", '<section class="hero"'),
        ("features", '<section class="features"'),
        ("feature", '<section class="features"'),
        ("pricing", '<section class="pricing"'),
        ("prices", '<section class="pricing"'),
        ("footer", "<footer"),
        ("header", "<header"),
        ("nav", "<header"),
    ])
    def test_named_anchors(self, name, expected_prefix):
        span = locate_anchor(LANDING_PAGE, name)
        assert LANDING_PAGE[span[0]:span[1]].startswith(expected_prefix)

    def test_hero_falls_back_to_first_section_after_header(self):
        span = locate_anchor(NO_HERO_MARKER_PAGE, "hero")
        assert NO_HERO_MARKER_PAGE[span[0]:span[1]] == "<section>Intro</section>"

    def test_generic_name_matches_id_substring(self):
        """Other names match a class or id substring, with nesting respected."""
        span = locate_anchor(CUSTOM_ID_PAGE, "faq")
        assert CUSTOM_ID_PAGE[span[0]:span[1]] == '<div id="faq-block"><div>Q</div><div>A</div></div>'

    def test_anchor_name_is_case_insensitive(self):
        assert locate_anchor(SIMPLE_PAGE, "HERO") is not None
