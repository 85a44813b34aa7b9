"""Prompt Builder - Construct LLM prompts for commit message generation."""

from dataclasses import dataclass, field

from aicommit import COMMIT_TYPES
from aicommit.git import ProcessedDiff, format_semantics

PREAMBLE = "Generate a conventional commit message."

CLOSING_INSTRUCTION = (
    "IMPORTANT: Reply with ONLY the commit message. No explanations, no preamble, "
    "no \"Here's\", no quotes, no markdown or ``` fences. "
    "Just the commit message starting with the type."
)

CLOSING_INSTRUCTION_SIMPLE = (
    "IMPORTANT: Reply with ONLY the commit message. No explanations, no preamble, "
    "no \"Here's\", no quotes, no markdown or ``` fences. "
    "Just the commit message starting with the subject line."
)


@dataclass
class PromptConfig:
    """User-provided context that shapes the prompt."""
    hint: str | None = None
    selected_type: str | None = None
    recent_commits: list[str] = field(default_factory=list)
    num_options: int = 1
    style: str = "conventional"
    include_body: bool = False
    max_subject_length: int = 72


class PromptBuilder:
    """Constructs prompts optimized for commit message generation.

    Sections always appear in the same order: explicit user hints first,
    bulk diff content after, and the reply-format instruction last.
    """

    def build(self, diff: ProcessedDiff, config: PromptConfig | None = None) -> str:
        config = config or PromptConfig()
        sections = [
            PREAMBLE,
            self._build_selection_section(config.selected_type),
            self._build_recent_section(config.recent_commits),
            self._build_note_section(config.hint),
            f"## Stats\n{diff.stats}",
            self._build_semantics_section(diff),
            self._build_files_section(diff),
            self._build_diff_section(diff),
            self._build_types_section(),
            self._build_rules_section(config),
        ]
        return "\n\n".join(filter(None, sections))

    def _build_selection_section(self, selected_type: str | None) -> str:
        if not selected_type or selected_type == 'auto':
            return ""
        description = COMMIT_TYPES.get(selected_type, '')
        return (
            "## User Selection\n"
            f"The user indicated this commit is most likely a \"{selected_type}\" ({description}).\n"
            "Use this type unless absolutely certain another type is more accurate.\n"
            f"You can still add a scope in parentheses, e.g., {selected_type}(scope): description."
        )

    def _build_recent_section(self, recent_commits: list[str]) -> str:
        if not recent_commits:
            return ""
        commit_list = "\n".join(f"- {c}" for c in recent_commits)
        return (
            "## Recent Project Activity\n"
            "These are the most recent commits in this repository, showing what the developer "
            "has been working on. Use this context to better understand how the current changes "
            f"fit into the ongoing work:\n{commit_list}"
        )

    def _build_note_section(self, hint: str | None) -> str:
        if not hint or not hint.strip():
            return ""
        return f"## User Note\n{hint.strip()}"

    def _build_semantics_section(self, diff: ProcessedDiff) -> str:
        text = format_semantics(diff.semantics)
        return f"## Code Changes\n{text}" if text else ""

    def _build_files_section(self, diff: ProcessedDiff) -> str:
        return f"## Files\n{diff.file_list}" if diff.file_list else ""

    def _build_diff_section(self, diff: ProcessedDiff) -> str:
        if not diff.compressed_diff:
            return ""
        section = f"## Diff\n{diff.compressed_diff}"
        if diff.truncated:
            section += "\n\n[Note: Diff was truncated due to size. Use the stats and file list for scope.]"
        return section

    def _build_types_section(self) -> str:
        types_list = "\n".join(f"- {t}: {desc}" for t, desc in COMMIT_TYPES.items())
        return f"## Commit Types\n{types_list}"

    def _build_rules_section(self, config: PromptConfig) -> str:
        is_simple = config.style == "simple"
        rules = [f"- Max {config.max_subject_length} characters in the subject line"]

        if is_simple:
            rules.append("- Format: a plain imperative subject line, no type prefix")
        else:
            rules.append("- Format: type(scope): description OR type: description")
        rules.append("- Focus on WHY not WHAT")

        if config.style == "detailed":
            rules.append("- After a blank line, add 3-5 bullet points explaining the change")
        elif config.include_body:
            rules.append("- After a blank line, add 1-3 bullet points for non-obvious details")
        else:
            rules.append("- Subject line only, no body")

        parts = ["## Rules\n" + "\n".join(rules)]
        if config.num_options > 1:
            parts.append(self._build_options_format(config))
        parts.append(self._closing_instruction(config))
        return "\n\n".join(parts)

    def _closing_instruction(self, config: PromptConfig) -> str:
        if config.num_options > 1:
            return (
                "IMPORTANT: Reply with ONLY the labelled options. No explanations, no preamble, "
                "no quotes, no markdown or ``` fences."
            )
        return CLOSING_INSTRUCTION_SIMPLE if config.style == "simple" else CLOSING_INSTRUCTION

    def _build_options_format(self, config: PromptConfig) -> str:
        n = config.num_options
        example = "Subject line here" if config.style == "simple" else "type(scope): subject line"
        option_labels = "\n".join(f"[Option {i}]\n{example}" for i in range(1, n + 1))
        return (
            f"Generate exactly {n} SEPARATE commit message options, each taking a "
            "meaningfully different angle on the change. Format exactly like this:\n\n"
            f"{option_labels}"
        )
