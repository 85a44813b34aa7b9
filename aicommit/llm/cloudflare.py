"""Cloudflare Workers AI LLM Client"""

import json
import os
import socket
import urllib.error
import urllib.request

from aicommit.llm.base import LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, request_timeout


class CloudflareClient(LLMClient):
    """Workers AI responses API.

    Requires AIC_CLOUDFLARE_ACCOUNT_ID and AIC_CLOUDFLARE_API_TOKEN.
    """

    DEFAULT_MODEL = "@cf/openai/gpt-oss-20b"
    API_BASE = "https://api.cloudflare.com/client/v4/accounts"
    DEFAULT_TIMEOUT = 120

    def __init__(self, model: str | None = None, account_id: str | None = None, api_token: str | None = None):
        self.model = model or self.DEFAULT_MODEL
        self.account_id = account_id or os.environ.get("AIC_CLOUDFLARE_ACCOUNT_ID")
        self.api_token = api_token or os.environ.get("AIC_CLOUDFLARE_API_TOKEN")
        self.timeout = request_timeout(self.DEFAULT_TIMEOUT)

        if not self.account_id or not self.api_token:
            raise LLMError(
                "Cloudflare credentials not found. Set environment variables:\n"
                "  export AIC_CLOUDFLARE_ACCOUNT_ID='your-account-id'\n"
                "  export AIC_CLOUDFLARE_API_TOKEN='your-api-token'"
            )

    @property
    def name(self) -> str:
        return f"Cloudflare ({self.model})"

    @property
    def url(self) -> str:
        return f"{self.API_BASE}/{self.account_id}/ai/v1/responses"

    def _call_api(self, prompt: str) -> dict:
        """Make a single API call to Workers AI."""
        payload = {"model": self.model, "input": f"{SYSTEM_PROMPT}\n\n{prompt}"}
        data = json.dumps(payload).encode('utf-8')
        req = urllib.request.Request(
            self.url,
            data=data,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            return json.loads(response.read().decode('utf-8'))

    @staticmethod
    def extract_text(data: dict) -> str:
        """Text of the first 'message' output item, or ''."""
        for item in data.get("output") or []:
            if item.get("type") != "message":
                continue
            content = item.get("content") or []
            if content:
                return (content[0].get("text") or "").strip()
        return ""

    def _complete(self, prompt: str) -> LLMResponse:
        try:
            data = self._call_api(prompt)
        except urllib.error.HTTPError as e:
            body = e.read().decode('utf-8', errors='replace')
            raise LLMError(f"Cloudflare API error ({e.code}): {body or e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise LLMError(f"Request timed out after {self.timeout}s. Increase timeout: set AIC_TIMEOUT=300")
            raise LLMError(f"Cloudflare request failed: {e.reason}")
        except socket.timeout:
            raise LLMError(f"Request timed out after {self.timeout}s. Increase timeout: set AIC_TIMEOUT=300")
        except json.JSONDecodeError:
            raise LLMError("Invalid response from Cloudflare API.")

        usage = data.get("usage") or {}
        return LLMResponse(
            content=self.extract_text(data),
            model=self.model,
            tokens_used=usage.get("input_tokens", 0) + usage.get("output_tokens", 0),
        )
