"""Changelog Prompt - Ask the LLM for a user-facing release entry."""

from aicommit.git import SemanticInfo

# Display caps per category, wider than the commit prompt's
SEMANTIC_LIMITS = [
    ('New/Changed Functions', 'functions', 15),
    ('New/Changed Classes', 'classes', 10),
    ('New/Changed Types', 'types', 10),
    ('New/Changed Exports', 'exports', 10),
]

INSTRUCTIONS = """## Instructions
Generate a changelog entry following these rules:

1. Write for END USERS, not developers
2. Focus on what users can now DO, not implementation details
3. Group changes into these sections (omit empty ones):
   - **Added** - New features and capabilities
   - **Changed** - Changes to existing functionality
   - **Fixed** - Bug fixes
   - **Removed** - Removed features (if any)

4. Rules:
   - Use past tense (Added, Fixed, Changed)
   - Each item should be ONE clear sentence
   - Skip internal changes (refactoring, dependencies, CI/CD, tests)
   - Skip chore/build commits unless they affect users
   - Don't mention file names, function names, or technical details
   - If a commit adds a new feature, describe what it enables users to do
   - If a commit fixes a bug, describe what problem was fixed

5. Output ONLY the markdown changelog content (the ### sections)
   Do NOT include the version header
   Do NOT include any preamble or explanation

Example output format:
### Added
- Users can now export their data to CSV format

### Fixed
- Fixed issue where app would crash on startup"""


class ChangelogPromptBuilder:
    """Builds the changelog request for a release."""

    def build(self, version: str, commits: list[str], diff_stats: str, semantics: SemanticInfo) -> str:
        sections = [
            f"Generate a user-friendly changelog for version {version}.",
            "## Commits\n" + "\n".join(f"- {c}" for c in commits),
        ]
        if diff_stats.strip():
            sections.append(f"## File Changes\n{diff_stats.rstrip()}")

        code_changes = self._format_semantics(semantics)
        if code_changes:
            sections.append(f"## Code Changes\n{code_changes}")

        sections.append(INSTRUCTIONS)
        return "\n\n".join(sections)

    def _format_semantics(self, semantics: SemanticInfo) -> str:
        lines = []
        for label, key, limit in SEMANTIC_LIMITS:
            names = getattr(semantics, key)
            if names:
                lines.append(f"{label}: {', '.join(names[:limit])}")
        return "\n".join(lines)
