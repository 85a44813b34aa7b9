"""Claude (Anthropic) LLM Client"""

import os

from anthropic import Anthropic, APIConnectionError, APIError, APITimeoutError, AuthenticationError

from aicommit.llm.base import LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, request_timeout


class ClaudeClient(LLMClient):
    """Claude API client. Requires ANTHROPIC_API_KEY env var."""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_TIMEOUT = 120
    MAX_TOKENS = 1000
    TEMPERATURE = 0.4

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model or self.DEFAULT_MODEL
        self.timeout = request_timeout(self.DEFAULT_TIMEOUT)

        if not self.api_key:
            raise LLMError(
                "No API key found. Set ANTHROPIC_API_KEY environment variable:\n"
                "  export ANTHROPIC_API_KEY='your-key-here'"
            )

        # The SDK retries transient failures itself; validation retries live in LLMClient
        self._client = Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=1)

    @property
    def name(self) -> str:
        return f"Claude ({self.model})"

    def _complete(self, prompt: str) -> LLMResponse:
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                temperature=self.TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except AuthenticationError:
            raise LLMError("Invalid API key. Check your ANTHROPIC_API_KEY.")
        except APITimeoutError:
            raise LLMError(f"Claude API timed out after {self.timeout}s. Increase timeout: set AIC_TIMEOUT=300")
        except APIConnectionError:
            raise LLMError("Could not reach the Claude API. Check your network connection.")
        except APIError as e:
            raise LLMError(f"Claude API error: {e.message}")

        text = next((block.text for block in response.content if block.type == "text"), "")
        usage = response.usage

        return LLMResponse(
            content=text.strip(),
            model=self.model,
            tokens_used=usage.input_tokens + usage.output_tokens,
        )
