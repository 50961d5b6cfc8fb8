"""
Access evaluation for restricted posts.
"""

from html import escape
from typing import Callable, List, Optional, Sequence, Tuple

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..host.protocols import CatalogOracle, IdentityOracle
from .models import (
    CAP_MANAGE_OPTIONS, CAP_MODERATE,
    AccessDecision, RestrictionRule, Viewer, normalize_rules
)


# Policy hooks receive the computed grant flag and may override it.
AccessPolicy = Callable[[bool, Viewer, Sequence[RestrictionRule]], bool]

ANY_PRODUCT_LABEL = "any product"
MESSAGE_GENERIC = "This content is restricted to buyers."
MESSAGE_SINGLE = "This content is restricted to buyers of {product}."
MESSAGE_LIST_HEADING = "This content is restricted to buyers of:"


def product_link(permalink: str, label: str) -> str:
    """Render a product as a link for denial messages."""
    return f'<a href="{escape(permalink or "", quote=True)}">{label}</a>'


def build_denial_message(rule_count: int, required_products: Sequence[str]) -> str:
    """Render the message shown in place of restricted content."""
    if not required_products:
        return MESSAGE_GENERIC

    if rule_count > 1:
        items = "".join(f"<li>{product}</li>" for product in required_products)
        return f"{MESSAGE_LIST_HEADING}<ul>{items}</ul>"

    return MESSAGE_SINGLE.format(product=required_products[0])


class AccessEvaluator:
    """Decides whether a viewer may see a post restricted to product buyers."""

    def __init__(
        self,
        identity: IdentityOracle,
        catalog: CatalogOracle,
        policies: Optional[Sequence[AccessPolicy]] = None,
        community_context: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.identity = identity
        self.catalog = catalog
        self.policies: List[AccessPolicy] = list(policies or [])
        self.community_context = community_context
        self.metrics = metrics
        self.logger = get_logger("content_restriction.evaluator")

    def add_policy(self, policy: AccessPolicy) -> None:
        """Register a hook that may override the computed decision."""
        self.policies.append(policy)

    def evaluate(self, viewer: Optional[Viewer], rules, post_id: Optional[str] = None) -> AccessDecision:
        """Evaluate ``rules`` for ``viewer``.

        Never raises for bad data: a missing viewer is anonymous, malformed
        rules and unknown products are not restrictive.
        """
        if self.metrics is None:
            return self._evaluate(viewer, rules, post_id)

        with self.metrics.time_operation("content_access_evaluation_seconds"):
            decision = self._evaluate(viewer, rules, post_id)
        self.metrics.record_access_decision(decision.granted, decision.reason)
        return decision

    def _evaluate(self, viewer: Optional[Viewer], rules, post_id: Optional[str]) -> AccessDecision:
        viewer = viewer or Viewer.anonymous()
        rules = normalize_rules(rules)

        granted, reason, required_products = self._decide(viewer, rules, post_id)
        message = None if granted else build_denial_message(len(rules), required_products)

        final = self._apply_policies(granted, viewer, rules)
        if final != granted:
            self.logger.info(
                "Access decision overridden by policy",
                post_id=post_id,
                viewer_id=viewer.id,
                computed=granted,
                granted=final
            )
            reason = "policy"
            message = None if final else (message or MESSAGE_GENERIC)

        decision = AccessDecision(granted=final, message=message, reason=reason)

        self.logger.debug(
            "access_decision",
            post_id=post_id,
            viewer_id=viewer.id,
            granted=decision.granted,
            reason=decision.reason,
            rule_count=len(rules)
        )
        return decision

    def _decide(
        self, viewer: Viewer, rules: List[RestrictionRule], post_id: Optional[str]
    ) -> Tuple[bool, str, List[str]]:
        """Return (granted, reason, required product display strings)."""
        if not rules:
            return True, "unrestricted", []

        if self.identity.has_capability(viewer, CAP_MANAGE_OPTIONS):
            return True, "administrator", []

        if post_id is not None and self.identity.can_edit(viewer, post_id):
            return True, "editor", []

        if self.community_context and self.identity.has_capability(viewer, CAP_MODERATE):
            return True, "moderator", []

        authenticated = self.identity.is_authenticated(viewer)
        required_products: List[str] = []

        for rule in rules:
            product_id = rule.product_ref

            if not product_id:
                return True, "unrestricted_rule", required_products

            if authenticated and self.identity.post_author(product_id) == viewer.id:
                return True, "product_author", required_products

            if rule.is_any:
                if authenticated and self.identity.has_any_purchase(viewer.id):
                    return True, "any_purchase", required_products
                required_products.append(ANY_PRODUCT_LABEL)
                return False, "denied", required_products

            title = self.catalog.title(product_id)
            if title is None:
                self.logger.warning("Restricted product not found", product_id=product_id, post_id=post_id)
                return True, "unknown_product", required_products

            permalink = self.catalog.permalink(product_id)

            if self.catalog.has_variable_pricing(product_id) and rule.targets_price_option:
                price_option_id = rule.price_option_ref
                option_name = self.catalog.variant_name(product_id, price_option_id) or price_option_id
                required_products.append(product_link(permalink, f"{title} - {option_name}"))
                purchased = authenticated and self.identity.has_purchased(viewer.id, product_id, price_option_id)
            else:
                required_products.append(product_link(permalink, title))
                purchased = authenticated and self.identity.has_purchased(viewer.id, product_id)

            if purchased:
                return True, "purchase", required_products

        return False, "denied", required_products

    def _apply_policies(self, granted: bool, viewer: Viewer, rules: Sequence[RestrictionRule]) -> bool:
        for policy in self.policies:
            granted = bool(policy(granted, viewer, rules))
        return granted
