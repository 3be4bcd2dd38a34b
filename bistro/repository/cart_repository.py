import os
import sqlite3
from decimal import Decimal
from typing import Any, Dict, List, Optional

MAX_LINE_QUANTITY = 999


class CartRepository:
    """
    Per-customer cart. Adding an item that is already in the cart increases
    its quantity instead of adding a second line.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or os.getenv("BISTRO_DB_PATH", "bistro.db")
        self._init_db()

    def _get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cart_lines (
                    cart_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    unit_price TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    seq INTEGER NOT NULL,
                    PRIMARY KEY (cart_id, item_id)
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def add_line(self, cart_id: str, item_id: str, quantity: int, *, name: str = "", unit_price: Decimal = Decimal("0")) -> None:
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {quantity}")
        if quantity > MAX_LINE_QUANTITY:
            raise ValueError(f"quantity must be <= {MAX_LINE_QUANTITY}, got {quantity}")

        conn = self._get_connection()
        try:
            existing = conn.execute(
                "SELECT quantity FROM cart_lines WHERE cart_id = ? AND item_id = ?", (cart_id, item_id)
            ).fetchone()
            if existing:
                if existing["quantity"] + quantity > MAX_LINE_QUANTITY:
                    raise ValueError(f"cart quantity for item {item_id} would exceed {MAX_LINE_QUANTITY}")
                conn.execute(
                    "UPDATE cart_lines SET quantity = quantity + ? WHERE cart_id = ? AND item_id = ?",
                    (quantity, cart_id, item_id),
                )
            else:
                seq = conn.execute(
                    "SELECT COALESCE(MAX(seq), 0) + 1 FROM cart_lines WHERE cart_id = ?", (cart_id,)
                ).fetchone()[0]
                conn.execute(
                    """
                    INSERT INTO cart_lines (cart_id, item_id, name, unit_price, quantity, seq)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (cart_id, item_id, name, f"{Decimal(unit_price):.2f}", quantity, seq),
                )
            conn.commit()
        finally:
            conn.close()

    def update_quantity(self, cart_id: str, item_id: str, quantity: int) -> bool:
        if quantity < 1:
            return self.remove_line(cart_id, item_id)
        if quantity > MAX_LINE_QUANTITY:
            raise ValueError(f"quantity must be <= {MAX_LINE_QUANTITY}, got {quantity}")
        conn = self._get_connection()
        try:
            cur = conn.execute(
                "UPDATE cart_lines SET quantity = ? WHERE cart_id = ? AND item_id = ?",
                (quantity, cart_id, item_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def remove_line(self, cart_id: str, item_id: str) -> bool:
        conn = self._get_connection()
        try:
            cur = conn.execute("DELETE FROM cart_lines WHERE cart_id = ? AND item_id = ?", (cart_id, item_id))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def list_lines(self, cart_id: str) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT item_id, name, unit_price, quantity FROM cart_lines WHERE cart_id = ? ORDER BY seq",
                (cart_id,),
            ).fetchall()
        finally:
            conn.close()

        lines = []
        for r in rows:
            unit_price = Decimal(r["unit_price"])
            lines.append({
                "item_id": r["item_id"],
                "name": r["name"],
                "unit_price": unit_price,
                "quantity": r["quantity"],
                "line_total": unit_price * r["quantity"],
            })
        return lines

    def total(self, cart_id: str) -> Decimal:
        return sum((line["line_total"] for line in self.list_lines(cart_id)), Decimal("0"))

    def clear(self, cart_id: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM cart_lines WHERE cart_id = ?", (cart_id,))
            conn.commit()
        finally:
            conn.close()
