import pytest

from artbot.errors import ConfigurationError
from artbot.utils.llm_clients import (
    ChatMessage,
    EchoLLMClient,
    OpenAILLMClient,
    build_llm_client,
)
from artbot.utils.settings import LLMConfig


def test_echo_client_returns_non_json_text():
    reply = EchoLLMClient().complete(
        [ChatMessage("system", "be helpful"), ChatMessage("user", "Project title: Dusk\nmore")]
    )
    assert reply == "echo: Project title: Dusk"


def test_build_echo_client():
    assert isinstance(build_llm_client(LLMConfig(provider="echo")), EchoLLMClient)


def test_build_deepseek_client_uses_its_endpoint(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    client = build_llm_client(
        LLMConfig(
            provider="deepseek",
            model="deepseek-chat",
            base_url="https://api.deepseek.com",
            api_key_env="DEEPSEEK_API_KEY",
        )
    )
    assert isinstance(client, OpenAILLMClient)
    assert client.provider == "deepseek"
    assert client.model == "deepseek-chat"


def test_unknown_provider_is_rejected():
    with pytest.raises(ConfigurationError):
        build_llm_client(LLMConfig(provider="carrier-pigeon"))
