from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from campus_dashboard.config import SETTINGS

logger = logging.getLogger(__name__)

_DEFAULT_SYSTEM_PROMPT = (
    "You are the voice assistant of a campus status dashboard. "
    "Answer briefly, in one or two spoken sentences. "
    "If the question needs live campus data you do not have, say so."
)


class Responder(Protocol):
    def complete(self, prompt: str) -> str | None:
        ...


class OpenAIResponder:
    """Free-text fallback for utterances the keyword router does not understand."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str | None = None,
        assistant_id: str | None = None,
        system_prompt: str | None = None,
        timeout_seconds: int | None = None,
    ) -> None:
        from openai import OpenAI

        self.client = OpenAI(api_key=api_key)
        self.model = model or SETTINGS.openai_model
        self.assistant_id = assistant_id
        self.system_prompt = system_prompt or _DEFAULT_SYSTEM_PROMPT
        self.timeout_seconds = timeout_seconds or SETTINGS.openai_assistant_timeout_seconds

    def complete(self, prompt: str) -> str | None:
        if self.assistant_id:
            return self._assistant_api_answer(prompt)
        return self._responses_api_answer(prompt)

    def _assistant_api_answer(self, prompt: str) -> str | None:
        try:
            thread = self.client.beta.threads.create(
                messages=[{"role": "user", "content": prompt}]
            )
            run = self.client.beta.threads.runs.create(
                thread_id=thread.id,
                assistant_id=self.assistant_id,
                instructions=self.system_prompt,
            )
            run = self._poll_run_completion(thread_id=thread.id, run=run)
            if getattr(run, "status", "") != "completed":
                logger.warning("Assistant run did not complete. status=%s", getattr(run, "status", "unknown"))
                return None

            messages = self.client.beta.threads.messages.list(thread_id=thread.id, order="desc", limit=15)
            for message in getattr(messages, "data", []):
                if _get_attr(message, "role") != "assistant":
                    continue
                text = _extract_assistant_text(_get_attr(message, "content", []))
                if text:
                    return text
            return None
        except Exception as exc:
            logger.warning("Assistant API request failed: %s", exc)
            return None

    def _responses_api_answer(self, prompt: str) -> str | None:
        try:
            response = self.client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
            )
            text = _get_attr(response, "output_text", None)
            if text:
                return str(text).strip()
            return None
        except Exception as exc:
            logger.warning("Responses API request failed: %s", exc)
            return None

    def _poll_run_completion(self, *, thread_id: str, run: Any) -> Any:
        deadline = time.time() + self.timeout_seconds
        status = _get_attr(run, "status", "")
        while status in {"queued", "in_progress", "cancelling"} and time.time() < deadline:
            time.sleep(0.7)
            run = self.client.beta.threads.runs.retrieve(thread_id=thread_id, run_id=_get_attr(run, "id"))
            status = _get_attr(run, "status", "")
        return run


def build_responder() -> Responder | None:
    """Returns the configured responder, or None when the assistant is offline."""
    if not SETTINGS.openai_api_key:
        return None

    try:
        return OpenAIResponder(
            api_key=SETTINGS.openai_api_key,
            model=SETTINGS.openai_model,
            assistant_id=SETTINGS.openai_assistant_id,
            system_prompt=SETTINGS.openai_assistant_system_prompt,
        )
    except Exception as exc:
        logger.warning("OpenAI SDK unavailable for free-text fallback: %s", exc)
        return None


def _extract_assistant_text(content_blocks: list[Any]) -> str:
    parts: list[str] = []
    for block in content_blocks or []:
        block_type = _get_attr(block, "type", "")
        if block_type != "text":
            continue
        text_obj = _get_attr(block, "text")
        value = _get_attr(text_obj, "value", "")
        if value:
            parts.append(str(value))
    return "\n".join(parts).strip()


def _get_attr(item: Any, name: str, default: Any = None) -> Any:
    if item is None:
        return default
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)
