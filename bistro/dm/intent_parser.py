import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from bistro.config.config_loader import load_json_config
from bistro.dm.phases import CATEGORY_PHASES, DialogPhase

# ---- Safety / limits ----
MAX_INPUT_LEN = 240
MAX_QUANTITY = 99

CATEGORY = "category"
SELECT_ITEM = "select_item"
QUANTITY = "quantity"
MORE = "more"
CONFIRM = "confirm"
UNKNOWN = "unknown"

_NUMBER_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


@dataclass(frozen=True)
class Intent:
    kind: str
    category: Optional[str] = None
    number: Optional[int] = None
    value: Optional[bool] = None

    @classmethod
    def unknown(cls) -> "Intent":
        return cls(UNKNOWN)

    @property
    def is_unknown(self) -> bool:
        return self.kind == UNKNOWN


def normalize_text(text: str) -> str:
    t = (text or "").strip()
    if len(t) > MAX_INPUT_LEN:
        t = t[:MAX_INPUT_LEN]
    return t


def parse_positive_int(text: str) -> Optional[int]:
    """
    Returns the first number in the text if it is a whole number >= 1.
    "2" / "2 please" -> 2; "0", "-3", "2.5", "abc" -> None.
    """
    m = _NUMBER_RE.search(text or "")
    if not m:
        return None
    token = m.group(0)
    if "." in token or "," in token:
        return None
    value = int(token)
    if value <= 0:
        return None
    return value


class IntentParser:
    """
    Classifies a raw utterance relative to the current phase's grammar.
    Keyword tables come from config/intent_keywords.json.
    """

    def __init__(self, keywords: Optional[Dict[str, Any]] = None):
        cfg = keywords if keywords is not None else load_json_config("intent_keywords.json")
        self.category_keywords: List[Tuple[str, str]] = [
            (kw.lower(), category) for kw, category in cfg["category_keywords"]
        ]
        self.affirmative_contains = [w.lower() for w in cfg["affirmative"]["contains"]]
        self.affirmative_exact = [w.lower() for w in cfg["affirmative"]["exact"]]
        self.negative_contains = [w.lower() for w in cfg["negative"]["contains"]]
        self.negative_exact = [w.lower() for w in cfg["negative"]["exact"]]
        extra = cfg.get("confirm_extra") or {}
        self.confirm_affirmative = [w.lower() for w in extra.get("affirmative", [])]
        self.confirm_negative = [w.lower() for w in extra.get("negative", [])]

    def parse(self, text: str, phase: DialogPhase) -> Intent:
        t = normalize_text(text).lower()
        if not t:
            return Intent.unknown()

        if phase in CATEGORY_PHASES:
            category = self.detect_category(t)
            if category:
                return Intent(CATEGORY, category=category)

        if phase == DialogPhase.PRESENTING_OPTIONS:
            n = parse_positive_int(t)
            if n is not None:
                return Intent(SELECT_ITEM, number=n)
            return Intent.unknown()

        if phase == DialogPhase.AWAITING_QUANTITY:
            n = parse_positive_int(t)
            if n is not None and n <= MAX_QUANTITY:
                return Intent(QUANTITY, number=n)
            return Intent.unknown()

        if phase == DialogPhase.AWAITING_MORE:
            answer = self.detect_yes_no(t)
            if answer is not None:
                return Intent(MORE, value=answer)
            return Intent.unknown()

        if phase == DialogPhase.AWAITING_CONFIRMATION:
            answer = self.detect_yes_no(
                t,
                extra_affirmative=self.confirm_affirmative,
                extra_negative=self.confirm_negative,
            )
            if answer is not None:
                return Intent(CONFIRM, value=answer)
            return Intent.unknown()

        return Intent.unknown()

    def detect_category(self, text: str) -> Optional[str]:
        t = text.lower()
        for kw, category in self.category_keywords:
            if kw in t:
                return category
        return None

    def detect_yes_no(
        self,
        text: str,
        extra_affirmative: Optional[List[str]] = None,
        extra_negative: Optional[List[str]] = None,
    ) -> Optional[bool]:
        t = text.strip().lower()
        affirmative = self.affirmative_contains + list(extra_affirmative or [])
        negative = self.negative_contains + list(extra_negative or [])

        # affirmative first: "yes, nothing else" is a yes
        if any(w in t for w in affirmative) or t in self.affirmative_exact:
            return True
        if any(w in t for w in negative) or t in self.negative_exact:
            return False
        return None
