"""Ollama LLM Client for Local Models"""

import http.client
import json
import os
import socket
import urllib.error
import urllib.request

from aicommit.llm.base import LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, request_timeout

NOT_RUNNING = "Ollama not running. Start with: ollama serve"
PROBE_TIMEOUT = 5


class OllamaClient(LLMClient):
    """Ollama client for local models. Requires: ollama serve"""

    DEFAULT_MODEL = "mistral:7b"
    DEFAULT_HOST = "http://localhost:11434"
    DEFAULT_TIMEOUT = 300  # 5 minutes for CPU inference
    KEEP_ALIVE = "10m"

    def __init__(self, model: str | None = None, host: str | None = None):
        self.model = model or self.DEFAULT_MODEL
        self.host = (host or os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST)).rstrip('/')
        self.timeout = request_timeout(self.DEFAULT_TIMEOUT)
        self._verify_connection()

    @property
    def name(self) -> str:
        return f"Ollama ({self.model})"

    def _get(self, path: str) -> dict:
        with urllib.request.urlopen(f"{self.host}{path}", timeout=PROBE_TIMEOUT) as response:
            return json.loads(response.read().decode('utf-8'))

    def _post(self, path: str, payload: dict) -> dict:
        req = urllib.request.Request(
            f"{self.host}{path}",
            data=json.dumps(payload).encode('utf-8'),
            headers={"Content-Type": "application/json"},
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            return json.loads(response.read().decode('utf-8'))

    def _verify_connection(self) -> None:
        try:
            self._get("/api/tags")
        except (urllib.error.URLError, json.JSONDecodeError, OSError):
            raise LLMError(NOT_RUNNING)

    def is_model_loaded(self) -> bool:
        """True if the model is already resident (per /api/ps)."""
        try:
            data = self._get("/api/ps")
        except (urllib.error.URLError, json.JSONDecodeError, OSError):
            return False
        loaded = [m.get('name') for m in data.get('models', []) if m.get('name')]
        return any(self.model in name or name in self.model for name in loaded)

    def warmup(self) -> bool:
        """Pre-load the model with a one-token request. Returns False on failure."""
        if self.is_model_loaded():
            return True
        try:
            self._post("/api/generate", {
                "model": self.model,
                "prompt": "hi",
                "stream": False,
                "options": {"num_predict": 1},
                "keep_alive": self.KEEP_ALIVE,
            })
        except (urllib.error.URLError, json.JSONDecodeError, OSError):
            return False
        return True

    def _call_api(self, prompt: str) -> dict:
        return self._post("/api/generate", {
            "model": self.model,
            "prompt": prompt,
            "system": SYSTEM_PROMPT,
            "stream": False,
            "keep_alive": self.KEEP_ALIVE,
            "options": {
                "temperature": 0.4,
                "num_predict": 1000,
            },
        })

    def _timed_out(self) -> LLMError:
        return LLMError(
            f"Request timed out after {self.timeout}s. Try:\n"
            "  - Pre-load model: aic --warmup\n"
            "  - Increase timeout: set AIC_TIMEOUT=600"
        )

    def _complete(self, prompt: str) -> LLMResponse:
        try:
            result = self._call_api(prompt)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise LLMError(f"Model '{self.model}' not found. Run: ollama pull {self.model}")
            raise LLMError(f"Ollama error ({e.code}): {e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise self._timed_out()
            if isinstance(e.reason, ConnectionRefusedError):
                raise LLMError(NOT_RUNNING)
            raise LLMError(f"Ollama request failed: {e.reason}")
        except socket.timeout:
            raise self._timed_out()
        except json.JSONDecodeError:
            raise LLMError("Invalid response from Ollama. Try a different model or a smaller change.")
        except http.client.HTTPException as e:
            raise LLMError(f"Incomplete response from Ollama: {e}. The model may have run out of memory.")
        except OSError as e:
            raise LLMError(f"Connection to Ollama lost: {e}. Check that 'ollama serve' is still running.")

        return LLMResponse(
            content=result.get("response", "").strip(),
            model=self.model,
            tokens_used=result.get("eval_count", 0),
        )
