from __future__ import annotations

import pytest

from conftest import FakeOpenAI
from message_relay import llm
from message_relay.llm import Fallback, GenerationConfig, Rephrased, RephraseClient
from message_relay.prompts import Category, Freeform, Preset


def test_rephrase_trims_first_choice(fake_openai):
    client = RephraseClient(fake_openai)
    assert client.rephrase("hello", Preset(Category.POSITIVE)) == "rephrased text"


def test_request_shape_uses_generation_config():
    fake = FakeOpenAI(reply="x")
    client = RephraseClient(fake, GenerationConfig(model="gpt-4o-mini", max_tokens=50, temperature=0.2))
    client.rephrase("hello", Freeform("Be brief."))

    call = fake.completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 50
    assert call["temperature"] == 0.2
    assert "timeout" not in call
    assert call["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "hello"},
    ]


def test_timeout_forwarded_when_configured():
    fake = FakeOpenAI(reply="x")
    RephraseClient(fake, GenerationConfig(timeout=5.0)).rephrase("hello", Preset(Category.SUPPORTIVE))
    assert fake.completions.calls[0]["timeout"] == 5.0


def test_api_error_falls_back_to_original(failing_openai):
    client = RephraseClient(failing_openai)
    result = client.rephrase_result("hello there", Preset(Category.COLLABORATIVE))
    assert isinstance(result, Fallback)
    assert result.original == "hello there"
    assert "quota" in str(result.cause)
    assert client.rephrase("hello there", Preset(Category.COLLABORATIVE)) == "hello there"
    assert len(failing_openai.completions.calls) == 2  # one call each, no retries


def test_empty_content_falls_back():
    client = RephraseClient(FakeOpenAI(reply=None))
    result = client.rephrase_result("hi", Preset(Category.POSITIVE))
    assert isinstance(result, Fallback)


def test_success_result_type(fake_openai):
    result = RephraseClient(fake_openai).rephrase_result("hi", Preset(Category.POSITIVE))
    assert result == Rephrased(text="rephrased text")


def test_create_from_config_requires_api_key(clean_env):
    with pytest.raises(RuntimeError):
        llm.create_from_config({"llm": {}})


def test_create_from_config_reads_env_key(clean_env, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = llm.create_from_config({"llm": {"model": "gpt-4o", "max_tokens": 123, "timeout": 3}})
    assert client.model == "gpt-4o"
    assert client.config.max_tokens == 123
    assert client.config.timeout == 3.0


def test_create_from_config_null_values_use_defaults(clean_env, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = llm.create_from_config({"llm": {"model": None, "max_tokens": None, "temperature": None}})
    assert client.model == "gpt-4"
    assert client.config.max_tokens == 400
    assert client.config.temperature == 0.7
