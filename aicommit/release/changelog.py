"""Changelog - Generate and maintain a Keep a Changelog file."""

import re
from dataclasses import dataclass, field
from datetime import date as Date
from pathlib import Path

from aicommit.git import DiffProcessor, GitAnalyzer, SemanticInfo
from aicommit.llm import LLMClient
from aicommit.prompts import ChangelogPromptBuilder
from aicommit.release.project import ReleaseError

CHANGELOG_PATH = 'CHANGELOG.md'

CHANGELOG_HEADER = """# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.1.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).

"""

# Used when there is no previous tag
DEFAULT_HISTORY_REF = 'HEAD~20'

_CONVENTIONAL_RE = re.compile(r'^(\w+)(?:\(([^)]+)\))?:\s*(.+)$')
_ENTRY_RE = re.compile(r'## \[([^\]]+)\] - (\d{4}-\d{2}-\d{2})')
_SECTIONS = ('Added', 'Changed', 'Fixed', 'Removed')


@dataclass
class CommitInfo:
    """One line of 'git log --oneline'."""
    hash: str
    message: str
    type: str | None = None
    scope: str | None = None
    description: str | None = None


@dataclass
class ChangelogEntry:
    version: str
    date: str
    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    fixed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def parse_commits(output: str) -> list[CommitInfo]:
    """Parse oneline log output, splitting conventional subjects into parts."""
    commits = []
    for line in output.strip().split('\n'):
        if not line:
            continue
        commit_hash, _, message = line.partition(' ')
        match = _CONVENTIONAL_RE.match(message)
        if match:
            commits.append(CommitInfo(
                hash=commit_hash,
                message=message,
                type=match.group(1),
                scope=match.group(2),
                description=match.group(3),
            ))
        else:
            commits.append(CommitInfo(hash=commit_hash, message=message))
    return commits


def clean_changelog_response(response: str) -> str:
    """Strip code fences and any preamble before the first ### section."""
    cleaned = response.strip()
    cleaned = re.sub(r'^```\w*\n?', '', cleaned)
    cleaned = re.sub(r'\n?```$', '', cleaned)

    first_section = re.search(r'^### ', cleaned, re.MULTILINE)
    if first_section and first_section.start() > 0:
        cleaned = cleaned[first_section.start():]

    return cleaned.strip()


def format_changelog_entry(version: str, content: str, date: Date | None = None) -> str:
    day = (date or Date.today()).isoformat()
    return f"## [{version}] - {day}\n\n{content}\n\n"


def insert_changelog_entry(existing: str, entry: str) -> str:
    """Place entry after the header and before the newest release."""
    if re.match(r'^# Changelog[\s\S]*?\n\n', existing):
        first_entry = re.search(r'\n## \[', existing)
        if first_entry:
            split = first_entry.start() + 1
            return existing[:split] + entry + existing[split:]
        return existing + entry

    # No usable header: start over with ours, keeping body text without a heading
    rest = '' if existing.startswith('#') else existing
    return CHANGELOG_HEADER + entry + rest


def detect_changelog_convention(content: str | None) -> str:
    """Classify existing changelog text as keepachangelog, other or none."""
    if content is None:
        return 'none'
    if (
        'Keep a Changelog' in content
        or 'keepachangelog.com' in content
        or re.search(r'## \[\d+\.\d+\.\d+\] - \d{4}-\d{2}-\d{2}', content)
    ):
        return 'keepachangelog'
    if '# Changelog' in content or '## ' in content:
        return 'other'
    return 'none'


def _extract_section(content: str, name: str) -> list[str]:
    match = re.search(rf'### {name}\n([\s\S]*?)(?=### |$)', content, re.IGNORECASE)
    if not match:
        return []
    items = (re.sub(r'^-\s*', '', line).strip() for line in match.group(1).split('\n'))
    return [item for item in items if item]


def parse_changelog(content: str) -> list[ChangelogEntry]:
    """Read release entries back out of a Keep a Changelog file."""
    bodies = _ENTRY_RE.split(content)
    # split() interleaves captured groups: [preamble, version, date, body, ...]
    entries = []
    for i in range(1, len(bodies) - 2, 3):
        version, day, body = bodies[i], bodies[i + 1], bodies[i + 2]
        sections = {name.lower(): _extract_section(body, name) for name in _SECTIONS}
        entries.append(ChangelogEntry(version=version, date=day, **sections))
    return entries


def read_changelog(root: Path | None = None) -> str | None:
    path = (root or Path.cwd()) / CHANGELOG_PATH
    if not path.is_file():
        return None
    return path.read_text(encoding='utf-8')


def initialize_changelog(root: Path | None = None) -> Path:
    path = (root or Path.cwd()) / CHANGELOG_PATH
    path.write_text(CHANGELOG_HEADER, encoding='utf-8')
    return path


def write_changelog(entry: str, root: Path | None = None) -> Path:
    """Insert entry into CHANGELOG.md, creating the file if needed."""
    path = (root or Path.cwd()) / CHANGELOG_PATH
    existing = read_changelog(root)
    path.write_text(insert_changelog_entry(existing if existing is not None else CHANGELOG_HEADER, entry),
                    encoding='utf-8')
    return path


def collect_semantics(diff_output: str) -> SemanticInfo:
    """Run a release diff through the commit pipeline for its symbol summary."""
    if not diff_output.strip():
        return SemanticInfo()
    return DiffProcessor().process(diff_output).semantics


def generate_changelog(analyzer: GitAnalyzer, client: LLMClient, version: str, prev_tag: str | None) -> str:
    """Ask the LLM for the changelog body of a release."""
    ref = prev_tag or DEFAULT_HISTORY_REF
    commits = parse_commits(analyzer.get_log_since(ref))
    if not commits:
        raise ReleaseError('No commits found since last release')

    prompt = ChangelogPromptBuilder().build(
        version,
        [c.message for c in commits],
        analyzer.get_diff_stat_since(ref),
        collect_semantics(analyzer.get_diff_since(ref)),
    )
    response = client.generate(prompt, validate=False)
    return clean_changelog_response(response.content)
