"""Shared pytest fixtures for Page Edit engine tests."""

import pytest
from unittest.mock import AsyncMock
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PageEditSettings
from logging_utils import PhaseLogger


# ============================================================================
# Documents
# ============================================================================

SIMPLE_PAGE = (
    '<header>H</header>'
    '<section class="hero">Hi</section>'
    '<footer>F</footer>'
)

LANDING_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Acme Tools</title>
<style>
body { font-family: sans-serif; }
.btn { padding: 8px 16px; }
</style>
</head>
<body>
<header class="site-header">
  <nav><a href="#features">Features</a><a href="#pricing">Pricing</a></nav>
  <h1>Acme Tools</h1>
</header>
<section class="hero" id="hero">
  <h2>Build faster</h2>
  <p>Everything you need to ship.</p>
  <a class="btn btn-primary" href="#contact">Get started</a>
  <img src="https://img.example.com/hero.jpg" alt="Hero">
</section>
<section class="features" id="features">
  <h2>Features</h2>
  <h3>Fast</h3>
  <p>Speed matters.</p>
  <h3>Safe</h3>
  <p>Security built in.</p>
  <img src="https://img.example.com/fast.jpg" alt="Fast">
  <img src="https://img.example.com/safe.jpg" alt="Safe">
</section>
<section class="pricing" id="pricing">
  <h2>Plans</h2>
  <div class="plan"><h3>Pro</h3><p>$29 per month</p><button>Buy</button></div>
</section>
<section class="contact" id="contact">
  <h2>Contact us</h2>
  <form action="/submit" data-sento-form="true">
    <input name="email" type="email">
    <button type="submit">Send</button>
  </form>
</section>
<footer class="site-footer">
  <p>&copy; 2024 Acme</p>
</footer>
<script src="/app.js"></script>
</body>
</html>
"""


@pytest.fixture
def simple_page():
    """Header, hero and footer only."""
    return SIMPLE_PAGE


@pytest.fixture
def landing_page():
    """A complete generated landing page with a wired contact form."""
    return LANDING_PAGE


# ============================================================================
# Service / Settings Fixtures
# ============================================================================

@pytest.fixture
def fake_ai_service():
    """Generation service stub; set generate_content.return_value or side_effect."""
    service = AsyncMock()
    service.generate_content = AsyncMock(return_value="")
    return service


@pytest.fixture
def page_edit_settings():
    """Default settings, independent of the process environment."""
    return PageEditSettings()


@pytest.fixture
def quiet_phase_logger():
    """Phase logger with banners and prompt dumps disabled."""
    return PhaseLogger(
        session_id="test",
        verbose=False,
        extra_verbose=False,
        logger=logging.getLogger("page_edit.tests"),
    )
