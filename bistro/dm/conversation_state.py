"""In-memory state of one order-taking conversation."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from bistro.dm.phases import DialogPhase
from bistro.menu.menu_catalog import MenuCatalogItem


@dataclass
class DraftOrderLine:
    """A catalog item and quantity chosen in the conversation but not yet in the cart."""

    item: MenuCatalogItem
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")

    @property
    def line_total(self) -> Decimal:
        return self.item.price * self.quantity


@dataclass
class ConversationState:
    conversation_id: str
    phase: DialogPhase = DialogPhase.INITIAL
    pending_item: Optional[MenuCatalogItem] = None
    pending_category: Optional[str] = None
    listed_options: List[MenuCatalogItem] = field(default_factory=list)
    draft_lines: List[DraftOrderLine] = field(default_factory=list)

    @property
    def running_total(self) -> Decimal:
        # Always derived from the draft lines, never stored.
        return sum((line.line_total for line in self.draft_lines), Decimal("0"))

    def reset(self) -> None:
        self.phase = DialogPhase.INITIAL
        self.pending_item = None
        self.pending_category = None
        self.listed_options = []
        self.draft_lines = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "phase": self.phase.value,
            "pending_item": self.pending_item.id if self.pending_item else None,
            "pending_category": self.pending_category,
            "draft_lines": [
                {"item_id": line.item.id, "name": line.item.name, "quantity": line.quantity}
                for line in self.draft_lines
            ],
            "running_total": f"{self.running_total:.2f}",
        }
