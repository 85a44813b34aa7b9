"""LLM Client Package"""

from aicommit.llm.base import LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, validate_commit_message
from aicommit.llm.claude import ClaudeClient
from aicommit.llm.claude_cli import ClaudeCLIClient
from aicommit.llm.cloudflare import CloudflareClient
from aicommit.llm.ollama import OllamaClient

PROVIDERS = {
    "claude": ClaudeClient,
    "claude-cli": ClaudeCLIClient,
    "cloudflare": CloudflareClient,
    "ollama": OllamaClient,
}

PROVIDER_NAMES = ["auto", *PROVIDERS]

AUTO_DETECT_ORDER = [OllamaClient, ClaudeClient, CloudflareClient, ClaudeCLIClient]


def get_client(provider: str = "auto", model: str | None = None) -> LLMClient:
    """Get an LLM client. Provider is one of PROVIDER_NAMES."""
    if provider in PROVIDERS:
        return PROVIDERS[provider](model=model)

    if provider == "auto":
        for client_class in AUTO_DETECT_ORDER:
            try:
                return client_class(model=model)
            except LLMError:
                continue

        raise LLMError(
            "No LLM provider available.\n\n"
            "Option 1 - Use Ollama (free, local):\n"
            "  1. Install: https://ollama.ai\n"
            "  2. Start: ollama serve\n"
            "  3. Pull: ollama pull llama3.2:3b\n\n"
            "Option 2 - Use Claude API:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'\n\n"
            "Option 3 - Use Cloudflare Workers AI:\n"
            "  export AIC_CLOUDFLARE_ACCOUNT_ID='your-account-id'\n"
            "  export AIC_CLOUDFLARE_API_TOKEN='your-api-token'\n\n"
            "Option 4 - Install the Claude CLI (claude)"
        )

    raise LLMError(f"Unknown provider: {provider}. Use one of: {', '.join(PROVIDER_NAMES)}.")


__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMError",
    "ClaudeClient",
    "ClaudeCLIClient",
    "CloudflareClient",
    "OllamaClient",
    "get_client",
    "PROVIDERS",
    "PROVIDER_NAMES",
    "SYSTEM_PROMPT",
    "validate_commit_message",
]
