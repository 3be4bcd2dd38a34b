"""Checkout: turns a cart into a placed order."""
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from bistro.repository.cart_repository import CartRepository
from bistro.repository.order_repository import DEFAULT_STATUS, OrderRepository

logger = logging.getLogger(__name__)


def new_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


class CheckoutService:
    def __init__(self, cart: CartRepository, orders: OrderRepository):
        self.cart = cart
        self.orders = orders

    def place_order(self, cart_id: str) -> Dict[str, Any]:
        """
        Prices the cart lines, saves the order and empties the cart.
        Raises ValueError when the cart is empty.
        """
        lines = self.cart.list_lines(cart_id)
        if not lines:
            raise ValueError(f"Cart {cart_id} is empty")

        items = []
        total = Decimal("0")
        for line in lines:
            total += line["line_total"]
            items.append({
                "item_id": line["item_id"],
                "name": line["name"],
                "unit_price": f"{line['unit_price']:.2f}",
                "quantity": line["quantity"],
                "line_total": f"{line['line_total']:.2f}",
            })

        payload = {
            "order_id": new_order_id(),
            "status": DEFAULT_STATUS,
            "created_at": datetime.now().isoformat(),
            "cart_id": cart_id,
            "items": items,
            "total_price": f"{total:.2f}",
        }
        payload = self.orders.save_order(payload, cart_id)
        self.cart.clear(cart_id)
        logger.info(f"Placed order {payload['order_id']} for cart {cart_id}: {payload['total_price']}")
        return payload
