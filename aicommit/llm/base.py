"""LLM Base Classes and Shared Code"""

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from aicommit import COMMIT_TYPE_NAMES


SYSTEM_PROMPT = """You are a senior software engineer specialized in writing precise, informative git commit messages and release notes.

Your expertise:
- Deep understanding of conventional commit format (type, scope, subject, body)
- Ability to identify the PRIMARY purpose of a change from a diff
- Writing for future developers who will read git log at 2am debugging production

Your standards:
- Every word earns its place: no filler, no fluff
- The diff shows WHAT; you explain WHY
- Specific verbs over vague ones (never "update", "change", "modify")"""

RETRY_NOTE = (
    "IMPORTANT: Your previous response was invalid ({error}). "
    "Start directly with the commit type, e.g., 'feat(scope):'"
)

_TYPES_PATTERN = '|'.join(COMMIT_TYPE_NAMES)
_COMMIT_LINE_RE = re.compile(rf'^[`"\'\s\[]*({_TYPES_PATTERN})(\(.+?\))?!?:')


def request_timeout(default: int) -> int:
    """Seconds from AIC_TIMEOUT, or default when unset or not a positive integer."""
    try:
        seconds = int(os.environ.get("AIC_TIMEOUT", ""))
    except ValueError:
        return default
    return seconds if seconds > 0 else default


def validate_commit_message(content: str) -> tuple[bool, str]:
    """Validate that response contains a conventional commit line."""
    if not content or len(content.strip()) < 10:
        return False, "Response too short"

    lines = content.strip().split('\n')
    if not any(_COMMIT_LINE_RE.match(line) for line in lines):
        return False, f"Missing conventional commit format. Got: {lines[0][:50]}"

    return True, ""


@dataclass
class LLMResponse:
    """Structured response from any LLM provider."""
    content: str
    model: str = ""
    tokens_used: int = 0


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class LLMClient(ABC):
    """Abstract base for LLM clients.

    Subclasses implement a single round trip in ``_complete``; retries on
    malformed commit messages are shared here.
    """

    MAX_RETRIES = 2

    @abstractmethod
    def _complete(self, prompt: str) -> LLMResponse:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    def generate(self, prompt: str, validate: bool = True) -> LLMResponse:
        """Generate text, re-asking when a commit message comes back malformed.

        After MAX_RETRIES the last response is returned anyway and left to
        the caller's cleanup. With validate=False the first response is
        returned as is (used for changelogs and plain-subject styles).
        """
        if not validate:
            return self._complete(prompt)

        last_error = ""
        for attempt in range(self.MAX_RETRIES + 1):
            retry_prompt = prompt
            if attempt > 0:
                retry_prompt = f"{prompt}\n\n{RETRY_NOTE.format(error=last_error)}"

            response = self._complete(retry_prompt)
            is_valid, error = validate_commit_message(response.content)
            if is_valid or attempt == self.MAX_RETRIES:
                return response
            last_error = error
