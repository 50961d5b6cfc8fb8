"""
Collaborator contracts consumed by the evaluator and the glue components.

The host platform owns identity, the product catalog, restriction metadata,
payments and posts; this service only reads through these interfaces.
"""

from typing import Iterable, Optional, Protocol

from ..rules.models import Post, Viewer


class IdentityOracle(Protocol):
    """Role, ownership and purchase-history lookups."""

    def has_capability(self, viewer: Viewer, capability: str) -> bool: ...

    def can_edit(self, viewer: Viewer, post_id: str) -> bool: ...

    def is_authenticated(self, viewer: Viewer) -> bool: ...

    def has_any_purchase(self, viewer_id: str) -> bool: ...

    def has_purchased(self, viewer_id: str, product_id: str, price_option_id: Optional[str] = None) -> bool: ...

    def post_author(self, product_id: str) -> Optional[str]: ...


class CatalogOracle(Protocol):
    """Product metadata lookups.

    ``title`` returns None for products the catalog does not know.
    """

    def title(self, product_id: str) -> Optional[str]: ...

    def permalink(self, product_id: str) -> str: ...

    def has_variable_pricing(self, product_id: str) -> bool: ...

    def variant_name(self, product_id: str, price_option_id: str) -> Optional[str]: ...


class RestrictionStore(Protocol):
    """Restriction metadata keyed by post, plus the product -> post reverse index."""

    def get_restriction(self, post_id: str) -> object: ...

    def get_protected_posts(self, product_id: str) -> Iterable[str]: ...


class PaymentStore(Protocol):
    """Completed purchases."""

    def get_payment_products(self, payment_id: str) -> Iterable[str]: ...


class PostDirectory(Protocol):
    """Post lookups."""

    def get_post(self, post_id: str) -> Optional[Post]: ...
