from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest

from ai_core import llm_client
from ai_core.errors import GenerationFailed, UpstreamFormatError
from ai_core.llm_client import Attachment, GeminiClient, GeminiConfig, build_parts, parse_json


class FakeModel:
    instances = []

    def __init__(self, model_name, system_instruction=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.requests = []
        self.reply = SimpleNamespace(text=json.dumps({"lesson": []}))
        FakeModel.instances.append(self)

    async def generate_content_async(self, contents, generation_config=None):
        self.requests.append((contents, generation_config))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def fake_genai(monkeypatch):
    FakeModel.instances = []
    monkeypatch.setattr(llm_client.genai, "configure", lambda **kw: None)
    monkeypatch.setattr(llm_client.genai, "GenerativeModel", FakeModel)
    return FakeModel


def test_config_reads_environment(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    cfg = GeminiConfig()
    assert cfg.api_key == "g-key"
    assert cfg.model == "gemini-test"


def test_generate_json_sends_schema_and_parts(fake_genai):
    client = GeminiClient(GeminiConfig(api_key="k", model="gemini-test"))
    parts = build_parts("hi", [Attachment(data=b"img", mime_type="image/png")])
    schema = {"type": "OBJECT"}

    out = asyncio.run(client.generate_json(parts, "be a tutor", schema))

    assert json.loads(out) == {"lesson": []}
    model = fake_genai.instances[0]
    assert model.model_name == "gemini-test"
    assert model.system_instruction == "be a tutor"
    contents, gen_cfg = model.requests[0]
    assert contents == [{"role": "user", "parts": parts}]
    assert gen_cfg.response_mime_type == "application/json"
    assert gen_cfg.response_schema == schema


def test_model_is_reused_per_system_instruction(fake_genai):
    client = GeminiClient(GeminiConfig(api_key="k"))

    async def run():
        await client.generate_json(build_parts("a"), "sys-a", {})
        await client.generate_json(build_parts("b"), "sys-a", {})
        await client.generate_json(build_parts("c"), "sys-b", {})

    asyncio.run(run())
    assert len(fake_genai.instances) == 2


def test_sdk_error_becomes_generation_failed(fake_genai):
    client = GeminiClient(GeminiConfig(api_key="k"))
    client._model("sys").reply = RuntimeError("429 quota")
    with pytest.raises(GenerationFailed, match="429 quota"):
        asyncio.run(client.generate_json(build_parts("x"), "sys", {}))


def test_missing_api_key_fails_without_calling_sdk(fake_genai):
    client = GeminiClient(GeminiConfig(api_key=""))
    with pytest.raises(GenerationFailed):
        asyncio.run(client.generate_json(build_parts("x"), "sys", {}))
    assert fake_genai.instances == []


def test_parse_json_rejects_empty_and_garbage():
    with pytest.raises(UpstreamFormatError):
        parse_json("   ")
    with pytest.raises(UpstreamFormatError) as exc:
        parse_json("{not json")
    assert exc.value.raw == "{not json"
    assert parse_json('```json\n{"a": 1}\n```') == {"a": 1}
