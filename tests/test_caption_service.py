from __future__ import annotations

import json

import httpx

from infrastructure.caption_service import EMPTY_RESPONSE_TEXT, FALLBACK_TEXT, CaptionService


def make_service(handler, key="test-key") -> CaptionService:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return CaptionService(
        key, model="gemini-test", endpoint="https://ai.test/v1beta", client=client
    )


def answer(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_generate_posts_prompt_and_returns_text():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=answer("  Golden light over the Seine.  "))

    service = make_service(handler)
    assert service.generate("Paris, France", "sunset walk") == "Golden light over the Seine."
    request = seen[0]
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "test-key"
    prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
    assert "Paris, France" in prompt
    assert "sunset walk" in prompt


def test_without_key_no_request_is_made():
    def handler(request):
        raise AssertionError("unexpected request")

    service = make_service(handler, key="")
    assert not service.enabled
    assert service.generate("Rome", "my notes") == "my notes"
    assert service.generate("Rome") == FALLBACK_TEXT


def test_failures_fall_back_to_notes():
    service = make_service(lambda request: httpx.Response(503))
    assert service.generate("Rome", "colosseum") == "colosseum"
    garbage = make_service(lambda request: httpx.Response(200, content=b"not json"))
    assert garbage.generate("Rome") == FALLBACK_TEXT


def test_empty_answer_uses_placeholder():
    service = make_service(lambda request: httpx.Response(200, json={"candidates": []}))
    assert service.generate("Rome") == EMPTY_RESPONSE_TEXT
