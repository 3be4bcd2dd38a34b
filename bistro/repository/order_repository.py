import json
import os
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

# lifecycle of a checked-out cart
ORDER_STATUSES = ("PLACED", "PREPARING", "READY", "PICKED_UP", "CANCELLED")
DEFAULT_STATUS = "PLACED"
MAX_PAGE_SIZE = 100


def normalize_status(status: str) -> str:
    """'placed' -> 'PLACED'; raises ValueError for anything outside ORDER_STATUSES."""
    value = (status or "").strip().upper()
    if value not in ORDER_STATUSES:
        raise ValueError(f"Unknown order status '{status}' (expected one of {', '.join(ORDER_STATUSES)})")
    return value


class OrderRepository:
    """Placed orders, one row per checkout. The full payload is kept as JSON."""

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
                CREATE TABLE IF NOT EXISTS orders (
                    order_id TEXT PRIMARY KEY,
                    cart_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    line_count INTEGER NOT NULL,
                    total_price TEXT NOT NULL,
                    order_payload_json TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def save_order(self, order_payload: Dict[str, Any], cart_id: str) -> Dict[str, Any]:
        """
        Stores an order built by the checkout service. The stored payload
        carries the normalized status and creation time.
        """
        payload = dict(order_payload)
        payload["status"] = normalize_status(payload.get("status", DEFAULT_STATUS))
        payload.setdefault("created_at", datetime.now().isoformat())
        payload["total_price"] = f"{Decimal(str(payload.get('total_price', '0'))):.2f}"

        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO orders
                (order_id, cart_id, status, created_at, line_count, total_price, order_payload_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    payload["order_id"],
                    cart_id,
                    payload["status"],
                    payload["created_at"],
                    len(payload.get("items", [])),
                    payload["total_price"],
                    json.dumps(payload, ensure_ascii=False),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return payload

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT order_payload_json FROM orders WHERE order_id = ?", (order_id,)).fetchone()
        finally:
            conn.close()
        return json.loads(row["order_payload_json"]) if row else None

    def list_orders(
        self,
        date: Optional[str] = None,
        status: Optional[str] = None,
        cart_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Newest first. `date` is a YYYY-MM-DD prefix of created_at."""
        clauses, params = [], []
        if cart_id:
            clauses.append("cart_id = ?")
            params.append(cart_id)
        if date:
            clauses.append("created_at LIKE ?")
            params.append(f"{date}%")
        if status:
            clauses.append("status = ?")
            params.append(normalize_status(status))

        query = "SELECT order_payload_json FROM orders"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([max(1, min(limit, MAX_PAGE_SIZE)), max(0, offset)])

        conn = self._get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [json.loads(r["order_payload_json"]) for r in rows]
