import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

CATEGORIES = (
    "appetizers",
    "main-courses",
    "pizzas",
    "pastas",
    "salads",
    "desserts",
    "drinks",
)

# Parsed bundled menu; items are immutable so the tuple can be shared.
_static_menu_cache: Optional[Tuple["MenuCatalogItem", ...]] = None


@dataclass(frozen=True)
class MenuCatalogItem:
    id: str
    name: str
    description: str
    price: Decimal
    category: str
    dietary: FrozenSet[str] = field(default_factory=frozenset)
    popular: bool = False
    rating: float = 0.0
    calories: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuCatalogItem":
        """
        Builds an item from a menu document.
        Raises ValueError when a required field is missing or out of range.
        """
        try:
            price = Decimal(str(data["price"]))
        except (KeyError, InvalidOperation) as e:
            raise ValueError(f"Menu item {data.get('id')!r} has no valid price") from e

        category = data.get("category")
        if category not in CATEGORIES:
            raise ValueError(f"Menu item {data.get('id')!r} has unknown category {category!r}")
        if price < 0:
            raise ValueError(f"Menu item {data.get('id')!r} has a negative price")

        rating = float(data.get("rating") or 0.0)
        calories = int(data.get("calories") or 0)
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            price=price,
            category=category,
            dietary=frozenset(data.get("dietary") or ()),
            popular=bool(data.get("popular", False)),
            rating=min(max(rating, 0.0), 5.0),
            calories=max(calories, 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": f"{self.price:.2f}",
            "category": self.category,
            "dietary": sorted(self.dietary),
            "popular": self.popular,
            "rating": self.rating,
            "calories": self.calories,
        }


def _parse_items(raw: Any) -> Tuple[MenuCatalogItem, ...]:
    if not isinstance(raw, list):
        raise ValueError("Menu document must be a list of items")
    items = []
    for entry in raw:
        try:
            items.append(MenuCatalogItem.from_dict(entry))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed menu entry {entry!r}: {e}")
    return tuple(items)


def load_static_menu() -> Tuple[MenuCatalogItem, ...]:
    """
    Loads the bundled menu_all.json once and caches the parsed items.
    Raises RuntimeError on file loading/parsing errors.
    """
    global _static_menu_cache
    if _static_menu_cache is not None:
        return _static_menu_cache

    current_dir = os.path.dirname(os.path.abspath(__file__))
    json_path = os.path.join(current_dir, "menu_all.json")

    try:
        with open(json_path, "r", encoding="utf-8-sig") as f:
            raw = json.load(f)
        _static_menu_cache = _parse_items(raw)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        raise RuntimeError(f"Failed to load or parse base menu file at {json_path}") from e

    return _static_menu_cache


def clear_cache():
    """Clears the module-level cache. Useful for testing."""
    global _static_menu_cache
    _static_menu_cache = None


class MenuCatalog:
    """
    Read-only menu catalog handed to each conversation.

    When a source URL is configured the menu is fetched over HTTP and the
    bundled menu is used whenever the remote source fails or is empty.
    """

    def __init__(self, source_url: Optional[str] = None, timeout: Optional[float] = None):
        self.source_url = source_url if source_url is not None else os.getenv("MENU_SOURCE_URL") or None
        self.timeout = timeout if timeout is not None else float(os.getenv("MENU_SOURCE_TIMEOUT", "5"))

    def _fetch_remote(self, category: Optional[str]) -> Tuple[MenuCatalogItem, ...]:
        params = {"category": category} if category else None
        resp = requests.get(self.source_url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return _parse_items(resp.json())

    def _all_items(self, category: Optional[str] = None) -> Tuple[MenuCatalogItem, ...]:
        if self.source_url:
            try:
                items = self._fetch_remote(category)
                if items:
                    return items
                logger.info("No menu items returned by remote source, using static data")
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Error fetching menu items from {self.source_url}: {e}")
        return load_static_menu()

    def list_items(self, category: Optional[str] = None) -> List[MenuCatalogItem]:
        items = self._all_items(category)
        if category:
            return [item for item in items if item.category == category]
        return sorted(items, key=lambda item: (item.category, item.name))

    def get_item(self, item_id: str) -> Optional[MenuCatalogItem]:
        for item in self._all_items():
            if item.id == item_id:
                return item
        return None

    def popular_items(self, limit: int = 6) -> List[MenuCatalogItem]:
        popular = [item for item in self._all_items() if item.popular]
        popular.sort(key=lambda item: (-item.rating, item.name))
        return popular[:limit]

    def filter_items(self, category: Optional[str] = None, dietary: Optional[str] = None) -> List[MenuCatalogItem]:
        items = self.list_items(category)
        if dietary:
            items = [item for item in items if dietary in item.dietary]
        return items

    def categories(self) -> Tuple[str, ...]:
        return CATEGORIES
