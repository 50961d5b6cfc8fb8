"""
Email template tags.

Templates carry ``{tag}`` placeholders that are resolved per payment when
the email is sent.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shared.logging import get_logger
from shared.errors import ValidationError


EmailTagFunc = Callable[[str], str]

_TAG_NAME = re.compile(r"^[a-z0-9_]+$")
_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_]+)\}")


@dataclass(frozen=True)
class EmailTag:
    tag: str
    description: str
    func: EmailTagFunc


class EmailTagRegistry:
    """Named placeholders and the callbacks that render them."""

    def __init__(self):
        self.logger = get_logger("content_restriction.email_tags")
        self._tags: Dict[str, EmailTag] = {}

    def add(self, tag: str, description: str, func: EmailTagFunc) -> None:
        tag = tag.strip().lower()
        if not _TAG_NAME.match(tag):
            raise ValidationError("Invalid email tag name", {"tag": tag})
        self._tags[tag] = EmailTag(tag=tag, description=description, func=func)
        self.logger.debug("Email tag registered", tag=tag)

    def remove(self, tag: str) -> bool:
        return self._tags.pop(tag.lower(), None) is not None

    def get(self, tag: str) -> Optional[EmailTag]:
        return self._tags.get(tag.lower())

    def tags(self) -> List[EmailTag]:
        return list(self._tags.values())

    def render(self, template: str, payment_id: str) -> str:
        """Replace registered placeholders; unknown ones are left untouched."""
        def _replace(match: "re.Match[str]") -> str:
            tag = self._tags.get(match.group(1).lower())
            if tag is None:
                return match.group(0)
            return tag.func(payment_id) or ""

        return _PLACEHOLDER.sub(_replace, template)
