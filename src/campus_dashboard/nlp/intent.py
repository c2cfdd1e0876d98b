from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Intent(str, Enum):
    GREETING = "greeting"
    THANKS = "thanks"
    TRAFFIC = "traffic"
    PARKING = "parking"
    LIBRARY = "library"
    FOOD = "food"
    ELEVATOR = "elevator"
    CLASSROOM = "classroom"
    COURSE_PLAN = "course_plan"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    keywords: tuple[str, ...]
    _patterns: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        patterns = tuple(re.compile(rf"\b{re.escape(keyword)}\b") for keyword in self.keywords)
        object.__setattr__(self, "_patterns", patterns)

    def match(self, text: str) -> str | None:
        for keyword, pattern in zip(self.keywords, self._patterns):
            if pattern.search(text):
                return keyword
        return None


@dataclass(frozen=True)
class IntentPrediction:
    intent: Intent
    keyword: str | None = None


# First matching rule wins; this order is the precedence policy.
INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(Intent.CLASSROOM, ("classroom", "classrooms", "empty room", "free room", "lecture hall")),
    IntentRule(Intent.ELEVATOR, ("lift", "lifts", "elevator", "elevators")),
    IntentRule(
        Intent.TRAFFIC,
        ("traffic", "commute", "congestion", "go home", "going home", "drive home", "route"),
    ),
    IntentRule(Intent.PARKING, ("parking", "park", "car park", "parking lot")),
    IntentRule(Intent.COURSE_PLAN, ("course", "courses", "plan", "planner", "timetable", "unit arrangement")),
    IntentRule(Intent.LIBRARY, ("library", "study space", "study seat", "study seats")),
    IntentRule(
        Intent.FOOD,
        (
            "food",
            "eat",
            "hungry",
            "lunch",
            "dinner",
            "breakfast",
            "canteen",
            "cafeteria",
            "dining",
            "stall",
            "stalls",
        ),
    ),
    IntentRule(Intent.THANKS, ("thanks", "thank you", "cheers")),
    IntentRule(Intent.GREETING, ("hello", "hi", "hey", "good morning", "good afternoon", "good evening")),
)


class IntentClassifier:
    """
    Keyword classifier for dashboard voice and text commands.

    Rules are tested in a fixed priority order and the first match wins, so an
    utterance mentioning both traffic and food is always a traffic command.
    """

    def __init__(self, rules: tuple[IntentRule, ...] = INTENT_RULES) -> None:
        self.rules = rules

    def predict(self, utterance: str) -> IntentPrediction:
        text = utterance.lower()
        for rule in self.rules:
            keyword = rule.match(text)
            if keyword is not None:
                return IntentPrediction(intent=rule.intent, keyword=keyword)
        return IntentPrediction(intent=Intent.UNMATCHED)

    def classify(self, utterance: str) -> Intent:
        return self.predict(utterance).intent
