"""
Input-modality adapters: turn a raw utterance into an Intent for the
dialogue engine. Text chat uses the keyword parser as is; voice transcripts
are normalized first and may fall back to an LLM category classifier.
"""
import re
from typing import Optional

from bistro.dm.intent_parser import CATEGORY, Intent, IntentParser, normalize_text
from bistro.dm.llm_classifier import LLMCategoryClassifier
from bistro.dm.phases import CATEGORY_PHASES, DialogPhase

NUMBER_WORDS = {
    "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20,
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10,
    "a couple of": 2, "a couple": 2, "couple of": 2, "a dozen": 12, "dozen": 12,
}

FILLER_WORDS = ("um", "umm", "uh", "uhh", "er", "erm", "hmm", "like")

# longest phrases first so "a couple of" wins over "a couple"
_NUMBER_RE = re.compile(
    r"\b(" + "|".join(sorted((re.escape(w) for w in NUMBER_WORDS), key=len, reverse=True)) + r")\b"
)
_FILLER_RE = re.compile(r"\b(?:" + "|".join(FILLER_WORDS) + r")\b")
# "one" is a number only when it opens the utterance; "the pepperoni one" is a pronoun
_LEADING_ONE_RE = re.compile(r"^((?:just|only)\s+)?one\b")
_PUNCT_RE = re.compile(r"[^\w\s'\-.]")
_SPACES_RE = re.compile(r"\s+")


class TextInputAdapter:
    modality = "text"
    greeting = "Welcome to AI Bistro! How can I help you today?"

    def __init__(self, parser: Optional[IntentParser] = None):
        self.parser = parser or IntentParser()

    def normalize(self, text: str) -> str:
        return normalize_text(text)

    def to_intent(self, text: str, phase: DialogPhase) -> Intent:
        return self.parser.parse(self.normalize(text), phase)


class VoiceInputAdapter(TextInputAdapter):
    modality = "voice"
    greeting = "Hi there! I'm your voice assistant. What would you like to order today?"

    def __init__(
        self,
        parser: Optional[IntentParser] = None,
        classifier: Optional[LLMCategoryClassifier] = None,
    ):
        super().__init__(parser)
        self.classifier = classifier

    def normalize(self, text: str) -> str:
        """
        "Um, the SECOND one please." -> "the 2 one please"
        """
        t = normalize_text(text).lower()
        t = _PUNCT_RE.sub(" ", t)
        # trailing sentence dots from speech recognizers ("two.")
        t = re.sub(r"(?<!\d)\.|\.(?!\d)", " ", t)
        t = _FILLER_RE.sub(" ", t)
        t = _NUMBER_RE.sub(lambda m: str(NUMBER_WORDS[m.group(1)]), t)
        t = _SPACES_RE.sub(" ", t).strip()
        return _LEADING_ONE_RE.sub(lambda m: (m.group(1) or "") + "1", t)

    def to_intent(self, text: str, phase: DialogPhase) -> Intent:
        normalized = self.normalize(text)
        intent = self.parser.parse(normalized, phase)
        if not intent.is_unknown or self.classifier is None or phase not in CATEGORY_PHASES:
            return intent
        # a bare ordinal while options are listed is never a category request
        if phase == DialogPhase.PRESENTING_OPTIONS and re.search(r"\d", normalized):
            return intent

        category = self.classifier.accepted_category(normalized)
        if category:
            return Intent(CATEGORY, category=category)
        return intent
