"""
Content Restriction service.
"""

from datetime import datetime
from typing import List, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ContentRestrictionException, NotFoundError, ServiceError
from shared.logging import set_viewer_context

from .content.gate import ContentGate, ShortcodeExpander
from .host.memory import InMemoryHost
from .receipts.email_tags import EmailTagRegistry
from .receipts.extender import ReceiptExtender
from .rules.evaluator import AccessEvaluator
from .rules.models import (
    AccessCheckRequest, AccessCheckResponse,
    ContentFilterRequest, ContentFilterResponse,
    EmailRenderRequest, EmailRenderResponse, EmailTagResponse,
    PageModel, PaymentPagesResponse,
    RestrictionResponse, RestrictionRuleModel
)


SERVICE_NAME = "content_restriction"
SERVICE_PORT = 8020


class ContentRestrictionService(BaseService):
    """Content restriction service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        host: Optional[InMemoryHost] = None,
        expand_shortcodes: Optional[ShortcodeExpander] = None,
    ):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config or get_config(SERVICE_NAME, SERVICE_PORT))

        # Initialize components
        self.host = host if host is not None else self._load_host()
        self.evaluator = AccessEvaluator(
            identity=self.host,
            catalog=self.host,
            community_context=self.config.community_context,
            metrics=self.metrics
        )
        self.gate = ContentGate(
            self.evaluator,
            self.host,
            expand_shortcodes=expand_shortcodes,
            css_class=self.config.message_css_class
        )
        self.receipts = ReceiptExtender(self.host, self.host, self.host, metrics=self.metrics)
        self.email_tags = EmailTagRegistry()
        self.receipts.register_email_tags(self.email_tags)

        self._setup_content_restriction_routes()

    def _load_host(self) -> InMemoryHost:
        if self.config.fixtures_file:
            self.logger.info("Loading host fixtures", path=self.config.fixtures_file)
            return InMemoryHost.from_file(self.config.fixtures_file)
        return InMemoryHost()

    def _setup_content_restriction_routes(self):
        """Set up content-restriction routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Content Restriction Service",
                "version": "1.0.0",
                "capabilities": ["access_check", "content_filter", "receipt_pages", "email_tags"]
            }

        @self.app.post("/access/check", response_model=AccessCheckResponse)
        async def check_access(request: AccessCheckRequest):
            """Evaluate restriction rules for a viewer."""
            try:
                viewer = self.host.get_viewer(request.viewer_id)
                set_viewer_context(viewer.id)

                decision = self.evaluator.evaluate(
                    viewer,
                    [rule.to_rule() for rule in request.rules],
                    request.post_id
                )

                return AccessCheckResponse(
                    granted=decision.granted,
                    message=decision.message,
                    reason=decision.reason
                )

            except ContentRestrictionException:
                raise
            except Exception as e:
                self.logger.error("Error checking access", error=str(e))
                raise ServiceError("Access check failed") from e

        @self.app.get("/posts/{post_id}/restriction", response_model=RestrictionResponse)
        async def get_restriction(post_id: str):
            """Get the restriction rules stored for a post."""
            self._require_post(post_id)
            rules = self.gate.is_restricted(post_id)
            return RestrictionResponse(
                post_id=post_id,
                restricted=bool(rules),
                rules=[RestrictionRuleModel(**rule.to_dict()) for rule in rules]
            )

        @self.app.post("/posts/{post_id}/content", response_model=ContentFilterResponse)
        async def filter_content(post_id: str, request: ContentFilterRequest):
            """Filter a post body for a viewer."""
            self._require_post(post_id)
            viewer = self.host.get_viewer(request.viewer_id)
            set_viewer_context(viewer.id)

            content = self.gate.filter_content(
                request.content,
                viewer,
                post_id,
                message=request.message,
                css_class=request.css_class
            )
            return ContentFilterResponse(
                post_id=post_id,
                content=content,
                restricted=bool(self.gate.is_restricted(post_id))
            )

        @self.app.get("/payments/{payment_id}/pages", response_model=PaymentPagesResponse)
        async def get_payment_pages(payment_id: str):
            """List the pages unlocked by a payment, with receipt markup."""
            pages = self.receipts.get_restricted_pages(payment_id)
            return PaymentPagesResponse(
                payment_id=payment_id,
                pages=[PageModel(id=p.id, title=p.title, permalink=p.permalink) for p in pages],
                receipt_html=self.receipts.render_receipt_pages(pages)
            )

        @self.app.get("/emails/tags", response_model=List[EmailTagResponse])
        async def list_email_tags():
            """List registered email tags."""
            return [
                EmailTagResponse(tag=tag.tag, description=tag.description)
                for tag in self.email_tags.tags()
            ]

        @self.app.post("/emails/render", response_model=EmailRenderResponse)
        async def render_email(request: EmailRenderRequest):
            """Resolve email tags in a template for a payment."""
            return EmailRenderResponse(body=self.email_tags.render(request.template, request.payment_id))

        @self.app.get("/stats")
        async def get_stats():
            """Get host data statistics."""
            return {
                "host": self.host.get_stats(),
                "policies": len(self.evaluator.policies),
                "email_tags": [tag.tag for tag in self.email_tags.tags()],
                "timestamp": datetime.now().isoformat()
            }

    def _require_post(self, post_id: str) -> None:
        if self.host.get_post(post_id) is None:
            raise NotFoundError("Post not found", {"post_id": post_id})

    async def _check_dependencies(self):
        """Check content restriction service dependencies."""
        return {"host": "ok" if self.host is not None else "error"}


def create_app():
    """Create content restriction service application."""
    service = ContentRestrictionService()
    return service.app


if __name__ == "__main__":
    service = ContentRestrictionService()
    service.run()
