"""Diff Processor - Transform git diffs into LLM-friendly context."""

import re
from collections import Counter
from dataclasses import dataclass, field

from aicommit.git.diff_parser import (
    STATUS_DELETED,
    STATUSES,
    FileDiff,
    ParsedDiff,
    parse_unified_diff,
)
from aicommit.git.semantic import SemanticInfo, extract_semantics

# Files whose diffs are noise: lock files, binaries, media, build output
EXCLUDED_PATTERNS: list[str] = [
    r'bun\.lock$', r'package-lock\.json$', r'yarn\.lock$',
    r'pnpm-lock\.yaml$', r'uv\.lock$',
    r'\.(png|jpg|jpeg|gif|ico|webp|svg)$',
    r'\.(woff2?|ttf|eot|otf)$',
    r'\.(mp3|mp4|wav|webm)$',
    r'\.DS_Store$', r'\.map$', r'\.tsbuildinfo$',
    r'dist/', r'build/', r'\.expo/', r'node_modules/',
]

# Files that get a one-line mention but no diff body. Empty by default.
SUMMARY_ONLY_PATTERNS: list[str] = []

MAX_LINES_PER_FILE = 50
MAX_TOTAL_DIFF_LINES = 1500
HEAD_PERCENT = 70


@dataclass
class ProcessorConfig:
    """Tunable settings for diff processing."""
    max_lines_per_file: int = MAX_LINES_PER_FILE
    max_total_lines: int = MAX_TOTAL_DIFF_LINES
    head_percent: int = HEAD_PERCENT
    excluded_patterns: list[str] = field(default_factory=lambda: list(EXCLUDED_PATTERNS))
    summary_patterns: list[str] = field(default_factory=lambda: list(SUMMARY_ONLY_PATTERNS))


@dataclass(frozen=True)
class ClassifiedFiles:
    """Disjoint, order-preserving relevance tiers of the parsed files."""
    included: tuple[FileDiff, ...] = ()
    summarized: tuple[FileDiff, ...] = ()
    excluded: tuple[FileDiff, ...] = ()

    @property
    def has_relevant(self) -> bool:
        return bool(self.included or self.summarized)

    @property
    def total_files(self) -> int:
        return len(self.included) + len(self.summarized) + len(self.excluded)


@dataclass(frozen=True)
class ProcessedDiff:
    """LLM-ready representation of a diff."""
    parsed: ParsedDiff
    classified: ClassifiedFiles
    semantics: SemanticInfo
    stats: str
    file_list: str
    compressed_diff: str
    truncated: bool = False

    @property
    def total_files(self) -> int:
        return self.parsed.total_files

    @property
    def included_files(self) -> int:
        return len(self.classified.included)

    @property
    def estimated_tokens(self) -> int:
        """Rough token estimate (~4 chars per token)."""
        return (len(self.stats) + len(self.file_list) + len(self.compressed_diff)) // 4


def format_stats(classified: ClassifiedFiles, total_additions: int, total_deletions: int) -> str:
    """One-line counts per status (included files only) and line totals."""
    counts = Counter(f.status for f in classified.included)
    parts = [f"{counts[status]} {status}" for status in STATUSES if counts[status]]
    return f"Files: {', '.join(parts)} | Lines: +{total_additions} / -{total_deletions}"


def format_file_list(classified: ClassifiedFiles) -> str:
    """Included paths, then summarized paths and the excluded count."""
    lines = []
    if classified.included:
        lines.append(', '.join(f.path for f in classified.included))
    if classified.summarized:
        lines.append(f"(summarized: {', '.join(f.path for f in classified.summarized)})")
    if classified.excluded:
        lines.append(f"(excluded: {len(classified.excluded)} files)")
    return '\n'.join(lines)


class DiffProcessor:
    """Transforms raw git diff into LLM-friendly context."""

    def __init__(self, config: ProcessorConfig | None = None):
        self.config = config or ProcessorConfig()
        self._excluded_re = [re.compile(p) for p in self.config.excluded_patterns]
        self._summary_re = [re.compile(p) for p in self.config.summary_patterns]

    def process(self, diff_output: str) -> ProcessedDiff:
        """Main entry point: raw diff text -> LLM-ready context."""
        parsed = self.parse(diff_output)
        classified = self.classify(parsed.files)
        semantics = extract_semantics(classified.included)
        compressed, truncated = self.compress_with_status(classified.included)

        return ProcessedDiff(
            parsed=parsed,
            classified=classified,
            semantics=semantics,
            stats=format_stats(classified, parsed.total_additions, parsed.total_deletions),
            file_list=format_file_list(classified),
            compressed_diff=compressed,
            truncated=truncated,
        )

    def parse(self, diff_output: str) -> ParsedDiff:
        return parse_unified_diff(diff_output)

    def classify(self, files: tuple[FileDiff, ...] | list[FileDiff]) -> ClassifiedFiles:
        included, summarized, excluded = [], [], []
        for file in files:
            tier = self.get_tier(file.path)
            if tier == 'excluded':
                excluded.append(file)
            elif tier == 'summarized':
                summarized.append(file)
            else:
                included.append(file)
        return ClassifiedFiles(
            included=tuple(included),
            summarized=tuple(summarized),
            excluded=tuple(excluded),
        )

    def get_tier(self, path: str) -> str:
        if any(p.search(path) for p in self._excluded_re):
            return 'excluded'
        if any(p.search(path) for p in self._summary_re):
            return 'summarized'
        return 'included'

    def compress(self, files: tuple[FileDiff, ...] | list[FileDiff]) -> str:
        """Concatenate per-file diffs within the per-file and total line budgets."""
        return self.compress_with_status(files)[0]

    def compress_with_status(self, files: tuple[FileDiff, ...] | list[FileDiff]) -> tuple[str, bool]:
        """Same as compress(), also reporting whether anything was cut."""
        parts = []
        remaining = self.config.max_total_lines
        truncated = False

        for file in files:
            if file.status == STATUS_DELETED:
                parts.append(f"--- {file.path} (deleted)")
                continue

            file_budget = min(self.config.max_lines_per_file, remaining)
            if file_budget <= 0:
                parts.append(f"--- {file.path} (omitted)")
                truncated = True
                continue

            text, emitted = self.truncate_diff(file.diff, file_budget)
            if text != file.diff:
                truncated = True
            remaining -= emitted
            parts.append(f"--- {file.header}\n{text}")

        return '\n\n'.join(parts), truncated

    def truncate_diff(self, diff: str, max_lines: int) -> tuple[str, int]:
        """Keep the head and tail of a diff within max_lines.

        Returns the text and the number of diff lines kept; the omission
        marker is not counted. A diff that already fits is returned as is.
        """
        lines = diff.split('\n')
        if len(lines) <= max_lines:
            return diff, len(lines)

        head_count = max_lines * self.config.head_percent // 100
        tail_count = max_lines - head_count
        omitted = len(lines) - max_lines

        kept = lines[:head_count]
        kept.append(f"... [{omitted} lines omitted] ...")
        kept.extend(lines[len(lines) - tail_count:])
        return '\n'.join(kept), max_lines
