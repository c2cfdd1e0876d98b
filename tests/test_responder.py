from __future__ import annotations

from dataclasses import replace

from campus_dashboard.llm import responder as responder_module


def test_build_responder_is_none_without_api_key(monkeypatch) -> None:
    monkeypatch.setattr(responder_module, "SETTINGS", replace(responder_module.SETTINGS, openai_api_key=None))

    assert responder_module.build_responder() is None


def test_extract_assistant_text_keeps_text_blocks_only() -> None:
    blocks = [
        {"type": "text", "text": {"value": "Lift A-L2 is closest."}},
        {"type": "image_file", "image_file": {"file_id": "f1"}},
        {"type": "text", "text": {"value": "It has no queue."}},
    ]

    assert responder_module._extract_assistant_text(blocks) == "Lift A-L2 is closest.\nIt has no queue."
    assert responder_module._extract_assistant_text([]) == ""
