"""
AI Commit

AI-powered commit messages and release changelogs from local git changes.
"""

__version__ = "1.0.0"

# Centralized commit types - single source of truth
# Used by: prompts/builder.py, llm/base.py (validation), cli/args.py (argparse)
COMMIT_TYPES = {
    'feat': 'A new feature for the user',
    'fix': 'A bug fix',
    'refactor': 'Code restructuring without changing behavior',
    'perf': 'Performance improvements',
    'style': 'Formatting, whitespace, or style changes',
    'docs': 'Documentation only changes',
    'test': 'Adding or updating tests',
    'build': 'Build system or external dependency changes',
    'ci': 'CI/CD configuration changes',
    'chore': 'Maintenance tasks, no production code change',
    'revert': 'Reverting a previous commit',
    'deps': 'Dependency upgrades or removals',
    'security': 'Fixing a vulnerability or hardening security',
    'i18n': 'Translations and localization changes',
}

# List of type names for validation and argparse
COMMIT_TYPE_NAMES = list(COMMIT_TYPES.keys())

# Note on breaking changes: Use "feat!:" or "fix!:" (with !) for breaking changes
# Example: feat!(api): remove deprecated endpoints
