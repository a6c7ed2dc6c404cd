from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"


class OrderStatus(str, Enum):
    NOT_STARTED = "Not started"
    ORDERED = "Ordered"
    MANUAL_REQUIRED = "Manual purchase required"
    FAILED = "Failed"


class CheckoutStatus(str, Enum):
    ORDERED = "ordered"
    MANUAL_REQUIRED = "manual_required"
    FAILED = "failed"


class OrchestrationMode(str, Enum):
    DISCOVERY = "discovery"
    ORDERS = "orders"
    RIDDLES = "riddles"
    CARDS = "cards"
    FULL = "full"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


def generate_work_item_id() -> str:
    return f"gift_{uuid.uuid4().hex[:12]}"


class ProductCandidate(BaseModel):
    title: str
    price: float
    url: str
    image_url: str = ""
    source: str = ""


class ProductReference(BaseModel):
    url: str
    title: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: ProductCandidate) -> "ProductReference":
        return cls(
            url=candidate.url,
            title=candidate.title,
            price=candidate.price,
            image_url=candidate.image_url or None,
            source=candidate.source or None,
        )


class WorkItem(BaseModel):
    id: str = Field(default_factory=generate_work_item_id)
    name: str = Field(..., min_length=1)
    gift_idea: str = Field(..., min_length=1)
    budget: float = Field(..., gt=0)
    product: Optional[ProductReference] = None
    approval_status: Optional[ApprovalStatus] = None
    order_status: Optional[OrderStatus] = None
    riddle: Optional[str] = None
    card_link: Optional[str] = None

    @property
    def awaiting_decision(self) -> bool:
        return self.approval_status in (None, ApprovalStatus.PENDING)

    @property
    def ready_for_checkout(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED and self.product is not None

    @property
    def ready_for_card(self) -> bool:
        return bool(self.riddle) and not self.card_link


class DiscoveryResult(BaseModel):
    query: str
    budget: float
    selected: Optional[ProductCandidate] = None
    alternatives: list[ProductCandidate] = Field(default_factory=list)
    # True when the empty result comes from a failed scrape, not from an empty shelf
    degraded: bool = False
    error: Optional[str] = None


class CheckoutResult(BaseModel):
    success: bool
    status: CheckoutStatus
    message: str

    @property
    def acceptable(self) -> bool:
        return self.success or self.status == CheckoutStatus.MANUAL_REQUIRED

    def to_order_status(self) -> OrderStatus:
        if self.status == CheckoutStatus.ORDERED:
            return OrderStatus.ORDERED
        if self.status == CheckoutStatus.MANUAL_REQUIRED:
            return OrderStatus.MANUAL_REQUIRED
        return OrderStatus.FAILED


class StepFlags(BaseModel):
    discovery: bool = False
    approval: bool = False
    order: bool = False
    riddle: bool = False
    card: bool = False


class ItemOutcome(BaseModel):
    row_id: str
    name: str
    status: OutcomeStatus
    steps: StepFlags = Field(default_factory=StepFlags)
    error: Optional[str] = None


class BatchReport(BaseModel):
    mode: OrchestrationMode
    processed: int = 0
    results: list[ItemOutcome] = Field(default_factory=list)


class DenialOutcome(BaseModel):
    success: bool
    product: Optional[ProductCandidate] = None
    remaining_alternatives: int = 0
    message: Optional[str] = None
