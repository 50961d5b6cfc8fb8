"""
Shared fixtures and factories for Content Restriction tests.
"""

import pytest
from typing import Dict, List, Optional

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_content_restriction.app.host.memory import Account, InMemoryHost, Product
from service_content_restriction.app.rules.evaluator import AccessEvaluator
from service_content_restriction.app.rules.models import Payment, Post, Purchase


class TestDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def create_test_products() -> List[Product]:
        """Create test products."""
        return [
            Product(
                id="P1",
                title="Guide",
                permalink="https://shop.example.com/downloads/guide/",
                author_id="author-1"
            ),
            Product(
                id="P2",
                title="Course",
                permalink="https://shop.example.com/downloads/course/",
                author_id="author-1",
                price_options={"1": "Personal", "2": "Agency"}
            ),
            Product(
                id="P3",
                title="Templates",
                permalink="https://shop.example.com/downloads/templates/"
            ),
        ]

    @staticmethod
    def create_test_posts() -> List[Post]:
        """Create test posts."""
        return [
            Post(id="10", title="Guide companion", permalink="https://shop.example.com/guide-companion/", author_id="admin"),
            Post(id="11", title="Agency handbook", permalink="https://shop.example.com/agency-handbook/", author_id="admin"),
            Post(id="12", title="Members lounge", permalink="https://shop.example.com/members/", author_id="admin"),
            Post(id="13", title="About", permalink="https://shop.example.com/about/", author_id="admin"),
        ]

    @staticmethod
    def create_test_restrictions() -> Dict[str, List[Dict[str, str]]]:
        """Create stored restriction metadata in the host's format."""
        return {
            "10": [{"download": "P1", "price_id": ""}],
            "11": [{"download": "P2", "price_id": "2"}, {"download": "P3", "price_id": ""}],
            "12": [{"download": "any"}],
        }


@pytest.fixture
def host():
    """Create a populated in-memory host."""
    host = InMemoryHost()
    for product in TestDataFactory.create_test_products():
        host.add_product(product)
    for post in TestDataFactory.create_test_posts():
        host.add_post(post, editors=["editor"] if post.id == "11" else ())
    for post_id, rules in TestDataFactory.create_test_restrictions().items():
        host.set_restriction(post_id, rules)

    host.add_account(Account(id="admin", capabilities={"manage_options"}))
    host.add_account(Account(id="moderator", capabilities={"moderate"}))
    host.add_account(Account(id="author-1"))
    host.add_account(Account(id="editor"))
    host.add_account(Account(id="buyer"))
    return host


@pytest.fixture
def buy(host):
    """Record a completed payment for a customer: buy("buyer", ("P2", "2"), "P1")."""
    counter = {"next": 1}

    def _buy(customer_id: Optional[str], *items) -> Payment:
        purchases = []
        for item in items:
            if isinstance(item, tuple):
                purchases.append(Purchase(item[0], item[1]))
            else:
                purchases.append(Purchase(item))
        payment = Payment(id=f"pay-{counter['next']}", customer_id=customer_id, items=tuple(purchases))
        counter["next"] += 1
        host.add_payment(payment)
        return payment

    return _buy


@pytest.fixture
def evaluator(host):
    """Create AccessEvaluator backed by the in-memory host."""
    return AccessEvaluator(identity=host, catalog=host)
