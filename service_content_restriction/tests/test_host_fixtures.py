"""
Unit tests for the in-memory host and its YAML fixtures.
"""

import os
import pytest

from service_content_restriction.app.host.memory import InMemoryHost
from service_content_restriction.app.rules.models import Post, Purchase, RestrictionRule, Viewer
from shared.errors import ValidationError


DEMO_FIXTURES = os.path.join(os.path.dirname(__file__), '..', 'fixtures', 'demo.yaml')


class TestInMemoryHost:
    """Test cases for InMemoryHost."""

    @pytest.fixture
    def demo_host(self):
        return InMemoryHost.from_file(DEMO_FIXTURES)

    def test_demo_fixtures_load(self, demo_host):
        assert demo_host.get_stats() == {
            "products": 2,
            "accounts": 5,
            "posts": 4,
            "restricted_posts": 3,
            "payments": 1,
        }

    def test_restrictions_normalized(self, demo_host):
        assert demo_host.get_restriction("43") == [RestrictionRule("102", "2")]
        assert demo_host.get_restriction("45") == []

    def test_reverse_index_derived_from_restrictions(self, demo_host):
        assert demo_host.get_protected_posts("101") == ["42"]
        assert demo_host.get_protected_posts("102") == ["43"]
        assert demo_host.get_protected_posts("any") == []

    def test_payments_feed_purchase_history(self, demo_host):
        assert demo_host.has_any_purchase("20") is True
        assert demo_host.has_any_purchase("21") is False
        assert demo_host.has_purchased("20", "102", "2") is True
        assert demo_host.has_purchased("20", "102", "1") is False
        assert demo_host.has_purchased("20", "102") is True
        assert demo_host.get_viewer("20").purchases == frozenset({Purchase("101"), Purchase("102", "2")})

    def test_catalog(self, demo_host):
        assert demo_host.title("101") == "Guide"
        assert demo_host.title("999") is None
        assert demo_host.has_variable_pricing("102") is True
        assert demo_host.has_variable_pricing("101") is False
        assert demo_host.variant_name("102", "2") == "Agency"
        assert demo_host.post_author("101") == "7"

    def test_get_viewer(self, demo_host):
        admin = demo_host.get_viewer("1")
        assert admin.authenticated is True
        assert "manage_options" in admin.capabilities
        assert demo_host.get_viewer(None) == Viewer.anonymous()
        assert demo_host.get_viewer("nobody").is_anonymous

    def test_can_edit(self, demo_host):
        assert demo_host.can_edit(demo_host.get_viewer("1"), "43") is True
        assert demo_host.can_edit(demo_host.get_viewer("7"), "43") is True
        assert demo_host.can_edit(demo_host.get_viewer("7"), "42") is False
        assert demo_host.can_edit(Viewer.anonymous(), "43") is False
        assert demo_host.can_edit(demo_host.get_viewer("1"), "missing") is False

    def test_set_restriction_updates_index(self):
        host = InMemoryHost()
        host.add_post(Post(id="1", title="A", permalink="https://example.com/a/"))

        host.set_restriction("1", [{"download": "P1"}, {"download": "P2", "price_id": "all"}])
        assert host.get_protected_posts("P1") == ["1"]

        host.set_restriction("1", [{"download": "P2"}])
        assert host.get_protected_posts("P1") == []
        assert host.get_protected_posts("P2") == ["1"]

        host.set_restriction("1", None)
        assert host.get_restriction("1") == []
        assert host.get_protected_posts("P2") == []

    def test_explicit_protected_posts_index(self):
        host = InMemoryHost.from_mapping({
            "posts": {"5": {"title": "Five", "permalink": "https://example.com/5/"}},
            "protected_posts": {"P9": [5]},
        })

        assert host.get_protected_posts("P9") == ["5"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            InMemoryHost.from_file(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("products: [unclosed", encoding="utf-8")

        with pytest.raises(ValidationError):
            InMemoryHost.from_file(str(path))

    def test_non_mapping_fixture(self):
        with pytest.raises(ValidationError):
            InMemoryHost.from_mapping(["not", "a", "mapping"])
