"""
Receipt and email extension listing the pages a purchase unlocked.
"""

from html import escape
from typing import List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..host.protocols import PaymentStore, PostDirectory, RestrictionStore
from ..rules.models import Post
from .email_tags import EmailTagRegistry


PAGES_HEADING = "Pages"
PAGE_LIST_TAG = "page_list"
PAGE_LIST_DESCRIPTION = "Shows a list of restricted pages the customer has access to"


class ReceiptExtender:
    """Resolves and renders the posts unlocked by a payment."""

    def __init__(
        self,
        store: RestrictionStore,
        payments: PaymentStore,
        posts: PostDirectory,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.payments = payments
        self.posts = posts
        self.metrics = metrics
        self.logger = get_logger("content_restriction.receipts")

    def get_restricted_pages(self, payment_id: Optional[str]) -> List[Post]:
        """Posts protected by any product in the payment, each listed once."""
        if not payment_id:
            return []

        product_ids = list(dict.fromkeys(str(p) for p in self.payments.get_payment_products(payment_id)))

        post_ids: List[str] = []
        for product_id in product_ids:
            post_ids.extend(str(post_id) for post_id in self.store.get_protected_posts(product_id) or [])
        post_ids = list(dict.fromkeys(post_ids))

        pages = []
        for post_id in post_ids:
            post = self.posts.get_post(post_id)
            if post is None:
                self.logger.warning("Protected post not found", post_id=post_id, payment_id=payment_id)
                continue
            pages.append(post)
        return pages

    def render_receipt(self, payment_id: Optional[str]) -> Optional[str]:
        """Receipt section for the order confirmation view, or None when nothing was unlocked.

        The host receipt is a table; the section closes it, adds the pages
        and reopens a table body for the rows that follow.
        """
        return self.render_receipt_pages(self.get_restricted_pages(payment_id))

    def render_receipt_pages(self, pages: List[Post]) -> Optional[str]:
        """Receipt section for pages already resolved for a payment."""
        if not pages:
            return None

        items = "".join(
            f'<li><a href="{escape(page.permalink, quote=True)}" class="download_file_link">{page.title}</a></li>'
            for page in pages
        )
        self._record("receipt", len(pages))
        return (
            f"</tbody></table><h3>{PAGES_HEADING}</h3><table><tbody>"
            f'<tr><td><ul class="cr-receipt">{items}</ul></td></tr>'
        )

    def render_page_list(self, payment_id: Optional[str]) -> str:
        """Markup for the ``{page_list}`` email tag; empty when nothing was unlocked."""
        pages = self.get_restricted_pages(payment_id)
        if not pages:
            return ""

        items = "".join(
            f'<li><a href="{escape(page.permalink, quote=True)}">{page.title}</a></li>'
            for page in pages
        )
        self._record("email", len(pages))
        return f'<div class="cr_accessible_pages">{PAGES_HEADING}</div><ul>{items}</ul>'

    def register_email_tags(self, registry: EmailTagRegistry) -> None:
        registry.add(PAGE_LIST_TAG, PAGE_LIST_DESCRIPTION, self.render_page_list)

    def _record(self, surface: str, count: int) -> None:
        if self.metrics is not None:
            self.metrics.record_pages_rendered(surface, count)
