"""
In-memory host stand-in.

Implements every collaborator protocol over plain dictionaries so the
service can run without the publishing platform, e.g. from a YAML fixture
file or inside tests.
"""

from typing import Any, Dict, Iterable, List, Optional, Set
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from shared.logging import get_logger
from shared.errors import ValidationError
from ..rules.models import (
    CAP_EDIT_OTHERS_POSTS,
    Payment, Post, Purchase, RestrictionRule, Viewer, normalize_rules
)


@dataclass
class Product:
    """Catalog entry. ``price_options`` maps option id -> name."""
    id: str
    title: str
    permalink: str
    author_id: Optional[str] = None
    price_options: Dict[str, str] = field(default_factory=dict)

    @property
    def has_variable_pricing(self) -> bool:
        return bool(self.price_options)


@dataclass
class Account:
    """Host user account."""
    id: str
    capabilities: Set[str] = field(default_factory=set)
    purchases: Set[Purchase] = field(default_factory=set)


def _purchase(data: Any) -> Purchase:
    rule = RestrictionRule.from_mapping(data)
    return Purchase(product_id=rule.product_ref, price_option_id=rule.price_option_ref or None)


class InMemoryHost:
    """Identity, catalog, restriction, payment and post lookups held in memory."""

    def __init__(self):
        self.logger = get_logger("content_restriction.host")
        self.products: Dict[str, Product] = {}
        self.accounts: Dict[str, Account] = {}
        self.posts: Dict[str, Post] = {}
        self.post_editors: Dict[str, Set[str]] = {}
        self.restrictions: Dict[str, List[RestrictionRule]] = {}
        self.protected_posts: Dict[str, List[str]] = {}
        self.payments: Dict[str, Payment] = {}

    # Population

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def add_account(self, account: Account) -> None:
        self.accounts[account.id] = account

    def add_post(self, post: Post, editors: Iterable[str] = ()) -> None:
        self.posts[post.id] = post
        self.post_editors[post.id] = set(editors)

    def set_restriction(self, post_id: str, rules: Any) -> None:
        """Store a post's rules and keep the product -> post index in step."""
        normalized = normalize_rules(rules)
        for post_ids in self.protected_posts.values():
            if post_id in post_ids:
                post_ids.remove(post_id)
        if normalized:
            self.restrictions[post_id] = normalized
        else:
            self.restrictions.pop(post_id, None)
        for rule in normalized:
            if rule.product_ref and not rule.is_any:
                self.protect_post(rule.product_ref, post_id)

    def protect_post(self, product_id: str, post_id: str) -> None:
        post_ids = self.protected_posts.setdefault(product_id, [])
        if post_id not in post_ids:
            post_ids.append(post_id)

    def add_payment(self, payment: Payment) -> None:
        self.payments[payment.id] = payment
        if payment.customer_id is None:
            return
        account = self.accounts.setdefault(payment.customer_id, Account(id=payment.customer_id))
        account.purchases.update(payment.items)

    def get_viewer(self, viewer_id: Optional[str]) -> Viewer:
        """Resolve a viewer id to a Viewer; unknown or missing ids are anonymous."""
        if not viewer_id:
            return Viewer.anonymous()
        account = self.accounts.get(str(viewer_id))
        if account is None:
            return Viewer.anonymous()
        return Viewer(
            id=account.id,
            authenticated=True,
            capabilities=frozenset(account.capabilities),
            purchases=frozenset(account.purchases),
        )

    # IdentityOracle

    def has_capability(self, viewer: Viewer, capability: str) -> bool:
        return self.is_authenticated(viewer) and capability in viewer.capabilities

    def can_edit(self, viewer: Viewer, post_id: str) -> bool:
        if not self.is_authenticated(viewer):
            return False
        post = self.posts.get(str(post_id))
        if post is None:
            return False
        if post.author_id == viewer.id or CAP_EDIT_OTHERS_POSTS in viewer.capabilities:
            return True
        return viewer.id in self.post_editors.get(post.id, set())

    def is_authenticated(self, viewer: Viewer) -> bool:
        return not viewer.is_anonymous

    def has_any_purchase(self, viewer_id: str) -> bool:
        account = self.accounts.get(str(viewer_id))
        return bool(account and account.purchases)

    def has_purchased(self, viewer_id: str, product_id: str, price_option_id: Optional[str] = None) -> bool:
        account = self.accounts.get(str(viewer_id))
        if account is None:
            return False
        for purchase in account.purchases:
            if purchase.product_id != product_id:
                continue
            if price_option_id is None or purchase.price_option_id == price_option_id:
                return True
        return False

    def post_author(self, product_id: str) -> Optional[str]:
        product = self.products.get(product_id)
        return product.author_id if product else None

    # CatalogOracle

    def title(self, product_id: str) -> Optional[str]:
        product = self.products.get(product_id)
        return product.title if product else None

    def permalink(self, product_id: str) -> str:
        product = self.products.get(product_id)
        return product.permalink if product else ""

    def has_variable_pricing(self, product_id: str) -> bool:
        product = self.products.get(product_id)
        return bool(product and product.has_variable_pricing)

    def variant_name(self, product_id: str, price_option_id: str) -> Optional[str]:
        product = self.products.get(product_id)
        if product is None:
            return None
        return product.price_options.get(price_option_id)

    # RestrictionStore

    def get_restriction(self, post_id: str) -> List[RestrictionRule]:
        return list(self.restrictions.get(str(post_id), []))

    def get_protected_posts(self, product_id: str) -> List[str]:
        return list(self.protected_posts.get(str(product_id), []))

    # PaymentStore

    def get_payment_products(self, payment_id: str) -> List[str]:
        payment = self.payments.get(str(payment_id))
        return payment.product_ids if payment else []

    # PostDirectory

    def get_post(self, post_id: str) -> Optional[Post]:
        return self.posts.get(str(post_id))

    def get_stats(self) -> Dict[str, int]:
        return {
            "products": len(self.products),
            "accounts": len(self.accounts),
            "posts": len(self.posts),
            "restricted_posts": len(self.restrictions),
            "payments": len(self.payments),
        }

    # Loading

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "InMemoryHost":
        """Build a host from fixture data.

        Expected top-level keys: ``products``, ``users``, ``posts``,
        ``payments`` and optionally ``protected_posts``. Each is a mapping
        keyed by id.
        """
        host = cls()
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError("Fixture data must be a mapping", {"type": type(data).__name__})

        for product_id, entry in (data.get("products") or {}).items():
            entry = entry or {}
            host.add_product(Product(
                id=str(product_id),
                title=str(entry.get("title", "")),
                permalink=str(entry.get("permalink", "")),
                author_id=str(entry["author"]) if entry.get("author") is not None else None,
                price_options={str(k): str(v) for k, v in (entry.get("prices") or {}).items()},
            ))

        for account_id, entry in (data.get("users") or {}).items():
            entry = entry or {}
            host.add_account(Account(
                id=str(account_id),
                capabilities=set(entry.get("capabilities") or []),
                purchases={_purchase(item) for item in entry.get("purchases") or []},
            ))

        restrictions: Dict[str, Any] = {}
        for post_id, entry in (data.get("posts") or {}).items():
            entry = entry or {}
            post = Post(
                id=str(post_id),
                title=str(entry.get("title", "")),
                permalink=str(entry.get("permalink", "")),
                author_id=str(entry["author"]) if entry.get("author") is not None else None,
            )
            host.add_post(post, editors=[str(e) for e in entry.get("editors") or []])
            restrictions[post.id] = entry.get("restricted_to")

        explicit_index = data.get("protected_posts")
        for post_id, rules in restrictions.items():
            host.set_restriction(post_id, rules)
        if explicit_index:
            host.protected_posts = {
                str(product_id): [str(p) for p in post_ids or []]
                for product_id, post_ids in explicit_index.items()
            }

        for payment_id, entry in (data.get("payments") or {}).items():
            entry = entry or {}
            host.add_payment(Payment(
                id=str(payment_id),
                customer_id=str(entry["customer"]) if entry.get("customer") is not None else None,
                items=tuple(_purchase(item) for item in entry.get("items") or []),
            ))

        host.logger.info("Host fixtures loaded", **host.get_stats())
        return host

    @classmethod
    def from_file(cls, path: str) -> "InMemoryHost":
        """Load fixtures from a YAML file."""
        fixture_path = Path(path)
        try:
            with fixture_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ValidationError("Fixtures file not found", {"path": str(fixture_path)}) from e
        except yaml.YAMLError as e:
            raise ValidationError("Fixtures file is not valid YAML", {"path": str(fixture_path), "error": str(e)}) from e
        return cls.from_mapping(data)


__all__ = ["InMemoryHost", "Product", "Account"]
