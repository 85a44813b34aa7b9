"""Claude Code CLI LLM Client"""

import shutil
import subprocess

from aicommit.llm.base import LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, request_timeout


class ClaudeCLIClient(LLMClient):
    """Runs the locally installed `claude` CLI in print mode."""

    DEFAULT_MODEL = "haiku"
    DEFAULT_TIMEOUT = 300

    def __init__(self, model: str | None = None, executable: str = "claude"):
        self.model = model or self.DEFAULT_MODEL
        self.timeout = request_timeout(self.DEFAULT_TIMEOUT)
        self.executable = shutil.which(executable)
        if not self.executable:
            raise LLMError(
                "Claude CLI not found. Install it and log in:\n"
                "  npm install -g @anthropic-ai/claude-code"
            )

    @property
    def name(self) -> str:
        return f"Claude CLI ({self.model})"

    def _complete(self, prompt: str) -> LLMResponse:
        try:
            result = subprocess.run(
                [self.executable, '--model', self.model, '-p', f"{SYSTEM_PROMPT}\n\n{prompt}"],
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise LLMError(f"Claude CLI failed (exit {e.returncode}): {e.stderr.strip()}")
        except subprocess.TimeoutExpired:
            raise LLMError(f"Claude CLI timed out after {self.timeout}s. Increase timeout: set AIC_TIMEOUT=600")
        except OSError as e:
            raise LLMError(f"Could not run Claude CLI: {e}")

        return LLMResponse(content=result.stdout.strip(), model=self.model)
