"""
Data models for content restriction.

Domain objects are plain dataclasses; the request/response shapes of the
HTTP surface are pydantic models.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


# Sentinels stored in restriction metadata
ANY_PRODUCT = "any"
ALL_PRICE_OPTIONS = "all"

# Host capabilities that bypass restrictions
CAP_MANAGE_OPTIONS = "manage_options"
CAP_MODERATE = "moderate"
CAP_EDIT_OTHERS_POSTS = "edit_others_posts"

# Keys accepted in stored restriction entries, newest first
_PRODUCT_KEYS = ("product_ref", "product", "download")
_PRICE_OPTION_KEYS = ("price_option_ref", "price_option", "price_id")


def _first_present(data: Dict[str, Any], keys: Tuple[str, ...]) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return str(value).strip()
    return ""


@dataclass(frozen=True)
class RestrictionRule:
    """One product (optionally a single price option) required for access."""
    product_ref: str = ""
    price_option_ref: str = ""

    @property
    def is_any(self) -> bool:
        return self.product_ref == ANY_PRODUCT

    @property
    def targets_price_option(self) -> bool:
        """True when the rule names a concrete price option rather than "all"."""
        return bool(self.price_option_ref) and self.price_option_ref.lower() != ALL_PRICE_OPTIONS

    @classmethod
    def from_mapping(cls, data: Any) -> "RestrictionRule":
        """Build a rule from stored metadata.

        Anything that is not a mapping yields an empty rule, which the
        evaluator treats as "not restricted".
        """
        if isinstance(data, RestrictionRule):
            return data
        if not isinstance(data, dict):
            return cls()
        return cls(
            product_ref=_first_present(data, _PRODUCT_KEYS),
            price_option_ref=_first_present(data, _PRICE_OPTION_KEYS),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"product": self.product_ref, "price_option": self.price_option_ref}


def normalize_rules(raw: Any) -> List[RestrictionRule]:
    """Coerce stored restriction metadata into an ordered list of rules."""
    if not raw:
        return []
    if isinstance(raw, dict):
        if _looks_like_rule(raw):
            raw = [raw]
        else:
            # Stored sequences may come back keyed by position
            raw = [raw[key] for key in sorted(raw, key=_position)]
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        return []
    return [RestrictionRule.from_mapping(item) for item in raw]


def _looks_like_rule(data: Dict[str, Any]) -> bool:
    return any(key in data for key in _PRODUCT_KEYS + _PRICE_OPTION_KEYS)


def _position(key: Any) -> Tuple[int, Any]:
    try:
        return (0, int(key))
    except (TypeError, ValueError):
        return (1, str(key))


@dataclass(frozen=True)
class Purchase:
    """A purchased product, optionally a specific price option."""
    product_id: str
    price_option_id: Optional[str] = None


@dataclass(frozen=True)
class Viewer:
    """The person looking at a post. Anonymous viewers have no id."""
    id: Optional[str] = None
    authenticated: bool = False
    capabilities: FrozenSet[str] = field(default_factory=frozenset)
    purchases: FrozenSet[Purchase] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls()

    @property
    def is_anonymous(self) -> bool:
        return not self.authenticated or self.id is None


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access evaluation.

    ``message`` is only set for denials. ``reason`` names the branch that
    settled the decision and is used for logs and metrics.
    """
    granted: bool
    message: Optional[str] = None
    reason: str = ""


@dataclass(frozen=True)
class Post:
    """A host post or page."""
    id: str
    title: str
    permalink: str
    author_id: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    """A completed purchase."""
    id: str
    customer_id: Optional[str] = None
    items: Tuple[Purchase, ...] = ()

    @property
    def product_ids(self) -> List[str]:
        return [item.product_id for item in self.items]


class RestrictionRuleModel(BaseModel):
    """Restriction rule as exchanged over HTTP."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    product: str = Field("", description="Product ID or 'any'")
    price_option: str = Field("", description="Price option ID, 'all' or empty")

    def to_rule(self) -> RestrictionRule:
        return RestrictionRule(product_ref=self.product.strip(), price_option_ref=self.price_option.strip())


class AccessCheckRequest(BaseModel):
    """Request model for an access check."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    viewer_id: Optional[str] = Field(None, description="Viewer ID; omitted for anonymous viewers")
    rules: List[RestrictionRuleModel] = Field(default_factory=list, description="Ordered restriction rules")
    post_id: Optional[str] = Field(None, description="Post being viewed, enables the editor shortcut")


class AccessCheckResponse(BaseModel):
    """Response model for an access check."""
    granted: bool = Field(..., description="Whether the viewer may see the content")
    message: Optional[str] = Field(None, description="Denial message markup")
    reason: str = Field("", description="Branch that settled the decision")


class RestrictionResponse(BaseModel):
    """Restriction rules stored for a post."""
    post_id: str
    restricted: bool
    rules: List[RestrictionRuleModel]


class ContentFilterRequest(BaseModel):
    """Request model for filtering a post body."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    viewer_id: Optional[str] = Field(None, description="Viewer ID; omitted for anonymous viewers")
    content: str = Field("", description="Post body markup")
    message: Optional[str] = Field(None, description="Replacement for the computed denial message")
    css_class: Optional[str] = Field(None, description="Extra CSS class for the denial block")


class ContentFilterResponse(BaseModel):
    """Response model for a filtered post body."""
    post_id: str
    content: str
    restricted: bool


class PageModel(BaseModel):
    """An unlocked page."""
    id: str
    title: str
    permalink: str


class PaymentPagesResponse(BaseModel):
    """Pages unlocked by a payment."""
    payment_id: str
    pages: List[PageModel]
    receipt_html: Optional[str] = None


class EmailRenderRequest(BaseModel):
    """Request model for rendering an email template."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    template: str = Field(..., description="Email body with {tag} placeholders")
    payment_id: str = Field(..., description="Completed payment ID")


class EmailRenderResponse(BaseModel):
    """Rendered email body."""
    body: str


class EmailTagResponse(BaseModel):
    """A registered email tag."""
    tag: str
    description: str
