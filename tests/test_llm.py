"""
Tests for LLM clients: validation, retries, provider selection and the
individual backends with their transports faked out.

Run with:
    pytest tests/test_llm.py -v
"""

import io
import json
import subprocess
import urllib.error
from types import SimpleNamespace

import pytest

import aicommit.llm as llm
from aicommit.llm import (
    ClaudeClient,
    ClaudeCLIClient,
    CloudflareClient,
    LLMClient,
    LLMError,
    LLMResponse,
    OllamaClient,
    SYSTEM_PROMPT,
    get_client,
    validate_commit_message,
)
from aicommit.llm.base import request_timeout


class FakeClient(LLMClient):
    """Returns queued replies and records every prompt it saw."""

    def __init__(self, replies=None, model=None):
        self.replies = list(replies or ["feat: add thing"])
        self.prompts = []

    @property
    def name(self) -> str:
        return "Fake"

    def _complete(self, prompt: str) -> LLMResponse:
        self.prompts.append(prompt)
        return LLMResponse(content=self.replies.pop(0), model="fake")


class UnavailableClient(FakeClient):

    def __init__(self, model=None):
        raise LLMError("not configured")


# ---------------------------------------------------------------------------
# validate_commit_message
# ---------------------------------------------------------------------------

class TestValidateCommitMessage:

    @pytest.mark.parametrize("content", [
        "feat(api): add paging support",
        "fix: handle empty response",
        "feat!: drop python 3.8",
        "`chore: bump version`",
        "Here is your message:\ndocs(readme): describe setup",
        "[i18n: add German translations",
    ])
    def test_valid(self, content):
        assert validate_commit_message(content) == (True, "")

    @pytest.mark.parametrize("content, reason", [
        ("", "too short"),
        ("feat: x", "too short"),
        ("Added a new paging feature to the API", "Missing conventional commit format"),
        ("feature: add paging support", "Missing conventional commit format"),
    ])
    def test_invalid(self, content, reason):
        is_valid, error = validate_commit_message(content)
        assert not is_valid
        assert reason in error


# ---------------------------------------------------------------------------
# Retry behaviour shared by every client
# ---------------------------------------------------------------------------

class TestGenerateRetries:

    def test_valid_first_try(self):
        client = FakeClient(["feat: add paging support"])
        assert client.generate("prompt").content == "feat: add paging support"
        assert len(client.prompts) == 1

    def test_retries_with_note_after_invalid_reply(self):
        client = FakeClient(["Sure, here you go!", "fix: handle empty response"])
        response = client.generate("prompt")

        assert response.content == "fix: handle empty response"
        assert len(client.prompts) == 2
        assert client.prompts[1].startswith("prompt\n\nIMPORTANT: Your previous response was invalid")

    def test_returns_last_reply_after_max_retries(self):
        replies = ["nope, not valid", "still not valid", "last invalid reply"]
        client = FakeClient(replies)
        assert client.generate("prompt").content == "last invalid reply"
        assert len(client.prompts) == LLMClient.MAX_RETRIES + 1

    def test_no_validation_single_call(self):
        client = FakeClient(["### Added\n- Paging"])
        assert client.generate("prompt", validate=False).content == "### Added\n- Paging"
        assert client.prompts == ["prompt"]


class TestRequestTimeout:

    @pytest.mark.parametrize("value, expected", [
        (None, 120),
        ("300", 300),
        ("0", 120),
        ("-5", 120),
        ("soon", 120),
    ])
    def test_env_value(self, monkeypatch, value, expected):
        if value is None:
            monkeypatch.delenv("AIC_TIMEOUT", raising=False)
        else:
            monkeypatch.setenv("AIC_TIMEOUT", value)
        assert request_timeout(120) == expected


# ---------------------------------------------------------------------------
# get_client
# ---------------------------------------------------------------------------

class TestGetClient:

    def test_unknown_provider(self):
        with pytest.raises(LLMError, match="Unknown provider"):
            get_client("gpt4")

    def test_explicit_provider(self, monkeypatch):
        monkeypatch.setitem(llm.PROVIDERS, "ollama", FakeClient)
        assert isinstance(get_client("ollama"), FakeClient)

    def test_auto_picks_first_available(self, monkeypatch):
        monkeypatch.setattr(llm, "AUTO_DETECT_ORDER", [UnavailableClient, FakeClient])
        assert isinstance(get_client("auto"), FakeClient)

    def test_auto_nothing_available(self, monkeypatch):
        monkeypatch.setattr(llm, "AUTO_DETECT_ORDER", [UnavailableClient, UnavailableClient])
        with pytest.raises(LLMError, match="No LLM provider available"):
            get_client("auto")

    def test_provider_names(self):
        assert llm.PROVIDER_NAMES == ["auto", "claude", "claude-cli", "cloudflare", "ollama"]


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class TestClaudeClient:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(LLMError, match="ANTHROPIC_API_KEY"):
            ClaudeClient()

    def test_complete_reads_text_block(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        client = ClaudeClient(model="claude-test")
        reply = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="  fix(api): retry on 503  ")],
            usage=SimpleNamespace(input_tokens=120, output_tokens=8),
        )
        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            return reply

        client._client = SimpleNamespace(messages=SimpleNamespace(create=create))
        response = client.generate("prompt")

        assert response.content == "fix(api): retry on 503"
        assert response.tokens_used == 128
        assert calls[0]["model"] == "claude-test"
        assert calls[0]["messages"] == [{"role": "user", "content": "prompt"}]


class TestClaudeCLIClient:

    def test_missing_executable(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: None)
        with pytest.raises(LLMError, match="Claude CLI not found"):
            ClaudeCLIClient()

    def test_runs_print_mode(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: "/usr/bin/claude")
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            return subprocess.CompletedProcess(cmd, 0, stdout="perf: cache config\n", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        client = ClaudeCLIClient()

        assert client.generate("prompt").content == "perf: cache config"
        assert seen["cmd"] == ["/usr/bin/claude", "--model", "haiku", "-p", f"{SYSTEM_PROMPT}\n\nprompt"]

    def test_failure_becomes_llm_error(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: "/usr/bin/claude")

        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(1, cmd, stderr="not logged in")

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(LLMError, match="not logged in"):
            ClaudeCLIClient().generate("prompt")


class TestCloudflareClient:

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setenv("AIC_CLOUDFLARE_ACCOUNT_ID", "acct")
        monkeypatch.setenv("AIC_CLOUDFLARE_API_TOKEN", "token")
        monkeypatch.delenv("AIC_TIMEOUT", raising=False)
        return CloudflareClient()

    def test_requires_credentials(self, monkeypatch):
        monkeypatch.delenv("AIC_CLOUDFLARE_ACCOUNT_ID", raising=False)
        monkeypatch.delenv("AIC_CLOUDFLARE_API_TOKEN", raising=False)
        with pytest.raises(LLMError, match="Cloudflare credentials"):
            CloudflareClient()

    def test_url_and_defaults(self, client):
        assert client.url == "https://api.cloudflare.com/client/v4/accounts/acct/ai/v1/responses"
        assert client.model == "@cf/openai/gpt-oss-20b"
        assert client.timeout == 120

    def test_extract_text_skips_reasoning(self):
        data = {"output": [
            {"type": "reasoning", "content": [{"text": "thinking..."}]},
            {"type": "message", "content": [{"type": "output_text", "text": " docs: fix typo "}]},
        ]}
        assert CloudflareClient.extract_text(data) == "docs: fix typo"

    @pytest.mark.parametrize("data", [{}, {"output": None}, {"output": [{"type": "message", "content": []}]}])
    def test_extract_text_missing(self, data):
        assert CloudflareClient.extract_text(data) == ""

    def test_complete_sums_usage(self, client, monkeypatch):
        data = {
            "output": [{"type": "message", "content": [{"text": "ci: cache pip downloads"}]}],
            "usage": {"input_tokens": 50, "output_tokens": 6},
        }
        monkeypatch.setattr(client, "_call_api", lambda prompt: data)
        response = client.generate("prompt")
        assert response.content == "ci: cache pip downloads"
        assert response.tokens_used == 56

    def test_request_carries_system_prompt(self, client, monkeypatch):
        seen = {}

        def fake_urlopen(req, timeout):
            seen["payload"] = json.loads(req.data.decode("utf-8"))
            seen["auth"] = req.get_header("Authorization")
            return io.BytesIO(b'{"output": []}')

        monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
        client._call_api("prompt")

        assert seen["auth"] == "Bearer token"
        assert seen["payload"]["input"] == f"{SYSTEM_PROMPT}\n\nprompt"


class TestOllamaClient:

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setattr(OllamaClient, "_verify_connection", lambda self: None)
        return OllamaClient(model="llama3.2:3b")

    def test_complete(self, client, monkeypatch):
        monkeypatch.setattr(client, "_call_api", lambda prompt: {"response": " test: cover parser ", "eval_count": 9})
        response = client.generate("prompt")
        assert response.content == "test: cover parser"
        assert response.tokens_used == 9

    def test_name(self, client):
        assert client.name == "Ollama (llama3.2:3b)"

    def test_warmup_skipped_when_loaded(self, client, monkeypatch):
        monkeypatch.setattr(client, "is_model_loaded", lambda: True)
        assert client.warmup() is True

    def test_model_loaded_matches_name(self, client, monkeypatch):
        monkeypatch.setattr(client, "_get", lambda path: {"models": [{"name": "llama3.2:3b"}]})
        assert client.is_model_loaded() is True

    def test_unnamed_entries_do_not_count_as_loaded(self, client, monkeypatch):
        monkeypatch.setattr(client, "_get", lambda path: {"models": [{"size": 1024}, {"name": ""}]})
        assert client.is_model_loaded() is False

    def test_missing_model(self, client, monkeypatch):
        def not_found(prompt):
            raise urllib.error.HTTPError("http://localhost:11434/api/generate", 404, "Not Found", None, None)

        monkeypatch.setattr(client, "_call_api", not_found)
        with pytest.raises(LLMError, match="ollama pull llama3.2:3b"):
            client.generate("prompt")
