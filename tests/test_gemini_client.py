# tests/test_gemini_client.py
import asyncio
from types import SimpleNamespace

import pytest

from providers.llm.gemini import GeminiClient, _finish_name, _normalize_model_name


def _resp(text="", reason="STOP", parts=None):
    content = SimpleNamespace(parts=parts) if parts is not None else None
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(finish_reason=reason, content=content)])


class _Models:
    def __init__(self, behaviours):
        self.behaviours = behaviours
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append(model)
        behaviour = self.behaviours[model]
        if isinstance(behaviour, Exception):
            raise behaviour
        if behaviour == "hang":
            await asyncio.sleep(5)
        return behaviour


def _client(behaviours, **kwargs):
    models = _Models(behaviours)
    sdk = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GeminiClient(client=sdk, model_candidates=list(behaviours), **kwargs), models


def test_model_names_are_normalized():
    assert _normalize_model_name("gemini-2.5-flash") == "models/gemini-2.5-flash"
    assert _normalize_model_name("models/x") == "models/x"


def test_finish_name_variants():
    assert _finish_name(None) == "UNKNOWN"
    assert _finish_name("FinishReason.MAX_TOKENS") == "MAX_TOKENS"
    assert _finish_name("STOP") == "STOP"


def test_generate_returns_text_from_first_model():
    client, models = _client({"models/a": _resp("Hello"), "models/b": _resp("unused")})

    text, used, failures = asyncio.run(client.generate("prompt"))

    assert (text, used, failures) == ("Hello", "models/a", [])
    assert models.calls == ["models/a"]


def test_generate_rebuilds_text_from_parts():
    parts = [SimpleNamespace(text="Hel"), {"text": "lo"}]
    client, _ = _client({"models/a": _resp("", parts=parts)})

    text, _, _ = asyncio.run(client.generate("prompt"))

    assert text == "Hello"


def test_timeout_falls_through_to_next_candidate():
    client, models = _client({"models/slow": "hang", "models/b": _resp("Fallback")}, timeout_s=0.05)

    text, used, failures = asyncio.run(client.generate("prompt"))

    assert (text, used) == ("Fallback", "models/b")
    assert failures == ["models/slow: TIMEOUT after 0.05s"]


def test_all_candidates_failing_yields_empty_text():
    client, _ = _client({"models/a": RuntimeError("boom"), "models/b": _resp("  ")})

    text, used, failures = asyncio.run(client.generate("prompt"))

    assert (text, used) == ("", "")
    assert failures[0] == "models/a: EXCEPTION boom"
    assert failures[1].startswith("models/b: finish_reason=STOP")


def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ValueError):
        GeminiClient()
