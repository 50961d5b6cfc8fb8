"""
Content gate: swaps restricted post bodies for a denial message.
"""

from typing import Callable, List, Optional

from shared.logging import get_logger
from ..host.protocols import RestrictionStore
from ..rules.evaluator import AccessEvaluator
from ..rules.models import RestrictionRule, Viewer, normalize_rules


# Host shortcode pass applied to whatever body is finally shown
ShortcodeExpander = Callable[[str], str]


def _no_shortcodes(content: str) -> str:
    return content


def render_message_block(message: str, css_class: Optional[str] = None) -> str:
    classes = " ".join(c for c in ("cr_message", (css_class or "").strip()) if c)
    return f'<div class="{classes}">{message}</div>'


class ContentGate:
    """Filters post bodies through the access evaluator."""

    def __init__(
        self,
        evaluator: AccessEvaluator,
        store: RestrictionStore,
        expand_shortcodes: Optional[ShortcodeExpander] = None,
        css_class: str = "",
    ):
        self.evaluator = evaluator
        self.store = store
        self.expand_shortcodes = expand_shortcodes or _no_shortcodes
        self.css_class = css_class
        self.logger = get_logger("content_restriction.gate")

    def is_restricted(self, post_id: Optional[str]) -> List[RestrictionRule]:
        """Rules attached to a post; empty when the post is unrestricted."""
        if post_id is None:
            return []
        return normalize_rules(self.store.get_restriction(post_id))

    def filter_content(
        self,
        content: str,
        viewer: Optional[Viewer],
        post_id: Optional[str] = None,
        message: Optional[str] = None,
        css_class: Optional[str] = None,
    ) -> str:
        """Content hook: filter a post body for ``viewer``.

        Without a post there is nothing to restrict and the body is returned
        as is, as are bodies of unrestricted posts.
        """
        rules = self.is_restricted(post_id)
        if not rules:
            return content
        return self.filter_restricted_content(content, rules, viewer, post_id, message=message, css_class=css_class)

    def filter_restricted_content(
        self,
        content: str = "",
        rules=None,
        viewer: Optional[Viewer] = None,
        post_id: Optional[str] = None,
        message: Optional[str] = None,
        css_class: Optional[str] = None,
    ) -> str:
        """Replace ``content`` with a denial block unless ``viewer`` may see it.

        ``message`` overrides the computed denial message. The result always
        goes through the shortcode pass, denial block included.
        """
        viewer = viewer or Viewer.anonymous()
        rules = normalize_rules(rules)
        can_edit = post_id is not None and self.evaluator.identity.can_edit(viewer, post_id)

        if rules and not can_edit:
            decision = self.evaluator.evaluate(viewer, rules, post_id)
            if not decision.granted:
                self.logger.info("Restricted content hidden", post_id=post_id, viewer_id=viewer.id)
                content = render_message_block(
                    message or decision.message or "",
                    css_class if css_class is not None else self.css_class
                )

        return self.expand_shortcodes(content)
