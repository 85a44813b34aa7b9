"""Diff Parser - Turn unified diff output into per-file change records."""

import re
from dataclasses import dataclass

FILE_BOUNDARY = 'diff --git '

_BOUNDARY_RE = re.compile(r'^diff --git ', re.MULTILINE)
_HEADER_RE = re.compile(r'a/(.+?) b/([^\r\n]+)')

STATUS_ADDED = 'added'
STATUS_MODIFIED = 'modified'
STATUS_DELETED = 'deleted'
STATUS_RENAMED = 'renamed'

STATUSES = (STATUS_MODIFIED, STATUS_ADDED, STATUS_DELETED, STATUS_RENAMED)


@dataclass(frozen=True)
class FileDiff:
    """One file touched by the diff."""
    path: str
    status: str
    diff: str
    additions: int = 0
    deletions: int = 0
    old_path: str | None = None

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    @property
    def header(self) -> str:
        """Path label used in prompts: 'old -> new' for renames."""
        if self.old_path:
            return f"{self.old_path} -> {self.path}"
        return self.path


@dataclass(frozen=True)
class ParsedDiff:
    """Every file record in order of appearance, plus line totals."""
    files: tuple[FileDiff, ...] = ()
    total_additions: int = 0
    total_deletions: int = 0

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def is_empty(self) -> bool:
        return len(self.files) == 0


def count_changes(lines: list[str]) -> tuple[int, int]:
    """Count +/- content lines, skipping the +++/--- file headers."""
    additions = 0
    deletions = 0
    for line in lines:
        if line.startswith('+') and not line.startswith('+++'):
            additions += 1
        elif line.startswith('-') and not line.startswith('---'):
            deletions += 1
    return additions, deletions


def added_lines(diff: str) -> list[str]:
    """Return added content lines with the leading '+' stripped."""
    return [
        line[1:] for line in diff.split('\n')
        if line.startswith('+') and not line.startswith('+++')
    ]


def _header_lines(lines: list[str]) -> list[str]:
    """Metadata lines between the boundary and the first hunk or file marker."""
    header = []
    for line in lines:
        if line.startswith(('@@', '--- ', '+++ ')):
            break
        header.append(line)
    return header


def _detect_status(header: list[str], old_path: str, new_path: str) -> str:
    # new/deleted markers win over the rename heuristic
    if any(line.startswith('new file mode') for line in header):
        return STATUS_ADDED
    if any(line.startswith('deleted file mode') for line in header):
        return STATUS_DELETED
    if any(line.startswith('rename from') for line in header) or old_path != new_path:
        return STATUS_RENAMED
    return STATUS_MODIFIED


def parse_file_block(block: str) -> FileDiff | None:
    """Parse one block that follows a 'diff --git ' boundary.

    Returns None when the header line has no 'a/<path> b/<path>' shape.
    """
    lines = block.split('\n')
    match = _HEADER_RE.search(lines[0])
    if not match:
        return None

    old_path, new_path = match.group(1), match.group(2)
    status = _detect_status(_header_lines(lines[1:]), old_path, new_path)
    additions, deletions = count_changes(lines[1:])
    body = block.rstrip('\n')

    return FileDiff(
        path=new_path,
        status=status,
        diff=f"{FILE_BOUNDARY}{body}",
        additions=additions,
        deletions=deletions,
        old_path=old_path if status == STATUS_RENAMED else None,
    )


def parse_unified_diff(diff_output: str) -> ParsedDiff:
    """Parse `git diff` output into ordered file records with totals.

    Anything before the first file boundary is discarded and blocks with
    an unrecognised header are skipped, so this never raises.
    """
    blocks = _BOUNDARY_RE.split(diff_output)[1:]

    files = []
    total_additions = 0
    total_deletions = 0
    for block in blocks:
        file_diff = parse_file_block(block)
        if file_diff is None:
            continue
        total_additions += file_diff.additions
        total_deletions += file_diff.deletions
        files.append(file_diff)

    return ParsedDiff(
        files=tuple(files),
        total_additions=total_additions,
        total_deletions=total_deletions,
    )
