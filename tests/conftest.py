"""Pytest fixtures for toolbind tests."""

from __future__ import annotations

import pytest


@pytest.fixture
def email_form_html() -> str:
    """A single form with one required email field."""
    return '<form id="f"><input id="email" name="email" type="email" required></form>'


@pytest.fixture
def contact_form_html() -> str:
    """Contact form with a submit button inside it."""
    return """
<div class="card">
  <h2>Contact us</h2>
  <form id="contact">
    <input id="name" name="name" type="text" required>
    <input id="email" name="email" type="email" required>
    <textarea id="message" name="message"></textarea>
    <button type="submit">Send</button>
  </form>
</div>
"""


@pytest.fixture
def signup_form_html() -> str:
    """Signup form whose fields are identified by name only."""
    return """
<form id="signup">
  <input name="name" type="text" required>
  <input name="email" type="email" required>
  <input name="password" type="password" required>
  <button type="submit">Create account</button>
</form>
"""


@pytest.fixture
def dashboard_html() -> str:
    """Standalone buttons, links and data-bound elements."""
    return """
<div id="dashboard">
  <p>Hello {{user.name}}, you have {{stats.count}} orders.</p>
  <button id="refresh-orders">Refresh</button>
  <button id="delete-order" data-action="delete">Delete</button>
  <button>Click</button>
  <a href="#details">Details</a>
  <a href="https://example.com/help">Help</a>
  <a href="/settings">Settings</a>
  <table id="orders"><tr><th>Id</th></tr></table>
  <div id="stats" data-source="order_stats"></div>
</div>
"""
