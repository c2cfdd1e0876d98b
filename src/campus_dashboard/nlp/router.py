from __future__ import annotations

import logging
from typing import Callable

from campus_dashboard.auth import AuthContext
from campus_dashboard.config import SETTINGS
from campus_dashboard.data_models import Category, CommandResponse, Destination, Record
from campus_dashboard.llm.responder import Responder
from campus_dashboard.nlp.handlers import (
    mentioned_destination,
    parse_current_floor,
    query_mode,
    render_availability,
    render_elevator_route,
    render_elevators,
    render_traffic,
)
from campus_dashboard.nlp.intent import Intent, IntentClassifier
from campus_dashboard.polling.scheduler import SnapshotSource
from campus_dashboard.recommend.elevators import ElevatorRankingEngine

logger = logging.getLogger(__name__)

SIGN_IN_MESSAGE = "Please sign in to see live campus data."
HELP_MESSAGE = (
    "I can help you with classrooms, lifts, traffic, parking, library, food stalls, and course planning!"
)
APOLOGY_MESSAGE = "Sorry, I couldn't answer that right now. " + HELP_MESSAGE

FIXED_RESPONSES: dict[Intent, tuple[str, str | None]] = {
    Intent.GREETING: ("Hi! Ask me about parking, library seats, food stalls, lifts or traffic.", None),
    Intent.THANKS: ("You're welcome!", None),
    Intent.CLASSROOM: ("Showing available classrooms for you.", Category.CLASSROOM.value),
    Intent.COURSE_PLAN: ("Opening your course planner.", "course_plan"),
}

DATA_INTENTS: dict[Intent, tuple[Category, str]] = {
    Intent.TRAFFIC: (Category.TRAFFIC, "traffic"),
    Intent.PARKING: (Category.PARKING, "parking"),
    Intent.LIBRARY: (Category.LIBRARY, "library seat"),
    Intent.FOOD: (Category.FOOD, "food stall"),
    Intent.ELEVATOR: (Category.ELEVATOR, "lift"),
}


class IntentRouter:
    """
    Turns a recognised utterance into a short spoken answer.

    Resource intents read the caller's scoped snapshot and pick a sub-case
    (best, worst or summary) from secondary keywords. Anything unmatched goes
    to the free-text responder when one is configured.
    """

    def __init__(
        self,
        source: SnapshotSource,
        auth: AuthContext,
        responder: Responder | None = None,
        *,
        classifier: IntentClassifier | None = None,
        top_n: int | None = None,
        default_current_floor: int | None = None,
    ) -> None:
        self.source = source
        self.auth = auth
        self.responder = responder
        self.classifier = classifier or IntentClassifier()
        self.top_n = top_n or SETTINGS.summary_top_n
        self.default_current_floor = (
            SETTINGS.default_current_floor if default_current_floor is None else default_current_floor
        )
        self.ranking = ElevatorRankingEngine()

    def classify(self, utterance: str) -> Intent:
        return self.classifier.classify(utterance)

    def handle(self, utterance: str) -> CommandResponse:
        prediction = self.classifier.predict(utterance)
        intent = prediction.intent
        logger.info("Routed utterance to intent=%s (keyword=%s)", intent.value, prediction.keyword)

        if intent in FIXED_RESPONSES:
            text, target = FIXED_RESPONSES[intent]
            return CommandResponse(utterance=utterance, intent=intent.value, text=text, target=target)

        if intent in DATA_INTENTS:
            category, noun = DATA_INTENTS[intent]
            return self._answer_from_snapshot(utterance, intent, category, noun)

        return CommandResponse(utterance=utterance, intent=intent.value, text=self._free_text(utterance))

    def _answer_from_snapshot(self, utterance: str, intent: Intent, category: Category, noun: str) -> CommandResponse:
        def respond(text: str, **data) -> CommandResponse:
            return CommandResponse(
                utterance=utterance,
                intent=intent.value,
                text=text,
                target=category.value,
                data=data,
            )

        user = self.auth.current_user()
        if user is None:
            return respond(SIGN_IN_MESSAGE)

        records = self._fetch(category, user.scope)
        if not records:
            return respond(f"No {noun} data is available right now.")

        if category == Category.ELEVATOR:
            return self._answer_elevator(utterance, records, user.scope, respond)

        mode = query_mode(utterance)
        if category == Category.TRAFFIC:
            text = render_traffic(records, mode, self.top_n)
        else:
            text = render_availability(category, records, mode, self.top_n)
        return respond(text, mode=mode.value)

    def _answer_elevator(
        self,
        utterance: str,
        elevators: list[Record],
        scope: str,
        respond: Callable[..., CommandResponse],
    ) -> CommandResponse:
        catalog = [item for item in self._fetch(Category.CLASSROOM, scope) if isinstance(item, Destination)]
        destination = mentioned_destination(utterance, catalog)
        mode = query_mode(utterance)
        if destination is None:
            return respond(render_elevators(elevators, mode, self.top_n), mode=mode.value)

        current_floor = parse_current_floor(utterance)
        if current_floor is None:
            current_floor = self.default_current_floor
        ranked = self.ranking.rank_in_building(elevators, destination, current_floor)
        return respond(
            render_elevator_route(ranked, destination, current_floor),
            mode="route",
            destination=destination.label,
            current_floor=current_floor,
            ranked=[item.to_dict() for item in ranked],
        )

    def _fetch(self, category: Category, scope: str) -> list[Record]:
        try:
            return list(self.source.fetch(category, scope))
        except Exception as exc:
            logger.warning("Could not read %s for scope=%s: %s", category.value, scope, exc)
            return []

    def _free_text(self, utterance: str) -> str:
        if self.responder is None:
            return HELP_MESSAGE
        try:
            answer = self.responder.complete(utterance)
        except Exception as exc:
            logger.warning("Free-text responder failed: %s", exc)
            return APOLOGY_MESSAGE
        if not answer or not answer.strip():
            return APOLOGY_MESSAGE
        return answer.strip()
