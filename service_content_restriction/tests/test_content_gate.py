"""
Unit tests for ContentGate.
"""

import pytest
from unittest.mock import MagicMock

from service_content_restriction.app.content.gate import ContentGate, render_message_block
from service_content_restriction.app.rules.models import RestrictionRule, Viewer


BODY = "<p>Secret [download_link]</p>"


class TestContentGate:
    """Test cases for ContentGate."""

    @pytest.fixture
    def shortcodes(self):
        """Host shortcode pass that tags its input."""
        return MagicMock(side_effect=lambda content: f"[expanded]{content}")

    @pytest.fixture
    def gate(self, evaluator, host, shortcodes):
        """Create ContentGate instance."""
        return ContentGate(evaluator, host, expand_shortcodes=shortcodes)

    def test_is_restricted(self, gate):
        assert gate.is_restricted("10") == [RestrictionRule("P1", "")]
        assert gate.is_restricted("13") == []
        assert gate.is_restricted(None) == []

    def test_unrestricted_post_passes_through(self, gate, shortcodes):
        content = gate.filter_content(BODY, Viewer.anonymous(), post_id="13")

        assert content == BODY
        shortcodes.assert_not_called()

    def test_no_post_context_passes_through(self, gate):
        assert gate.filter_content(BODY, Viewer.anonymous()) == BODY

    def test_denied_viewer_sees_message_block(self, gate, shortcodes):
        content = gate.filter_content(BODY, Viewer.anonymous(), post_id="10")

        assert content == (
            '[expanded]<div class="cr_message">This content is restricted to buyers of '
            '<a href="https://shop.example.com/downloads/guide/">Guide</a>.</div>'
        )
        shortcodes.assert_called_once()

    def test_message_and_css_class_overrides(self, gate):
        content = gate.filter_content(BODY, Viewer.anonymous(), post_id="10", message="Members only.", css_class="boxed")

        assert content == '[expanded]<div class="cr_message boxed">Members only.</div>'

    def test_granted_viewer_sees_body_with_shortcodes_expanded(self, gate, host, buy):
        buy("buyer", "P1")

        content = gate.filter_content(BODY, host.get_viewer("buyer"), post_id="10")

        assert content == f"[expanded]{BODY}"

    def test_editor_skips_evaluation(self, host, shortcodes):
        evaluator = MagicMock()
        evaluator.identity = host
        gate = ContentGate(evaluator, host, expand_shortcodes=shortcodes)

        content = gate.filter_content(BODY, host.get_viewer("editor"), post_id="11")

        assert content == f"[expanded]{BODY}"
        evaluator.evaluate.assert_not_called()

    def test_custom_message_and_class(self, gate):
        content = gate.filter_restricted_content(
            BODY,
            [{"download": "P1"}],
            Viewer.anonymous(),
            post_id="10",
            message="Buy the guide first.",
            css_class="notice"
        )

        assert content == '[expanded]<div class="cr_message notice">Buy the guide first.</div>'

    def test_default_class_from_gate(self, evaluator, host):
        gate = ContentGate(evaluator, host, css_class="paywall")

        content = gate.filter_content(BODY, Viewer.anonymous(), post_id="12")

        assert content == (
            '<div class="cr_message paywall">This content is restricted to buyers of any product.</div>'
        )

    def test_empty_rules_still_expand_shortcodes(self, gate):
        assert gate.filter_restricted_content(BODY, [], None, post_id="13") == f"[expanded]{BODY}"


def test_render_message_block_without_class():
    assert render_message_block("Nope") == '<div class="cr_message">Nope</div>'
    assert render_message_block("Nope", "  ") == '<div class="cr_message">Nope</div>'
