"""Prompt Construction Package"""

from aicommit.prompts.builder import PromptBuilder, PromptConfig
from aicommit.prompts.changelog import ChangelogPromptBuilder

__all__ = [
    "PromptBuilder",
    "PromptConfig",
    "ChangelogPromptBuilder",
]
