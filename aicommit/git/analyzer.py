"""Git Analyzer - Thin wrapper around the git binary."""

import re
import subprocess
from dataclasses import dataclass


@dataclass
class StatusEntry:
    """One line of 'git status --porcelain'."""
    path: str
    status: str

    @property
    def hint(self) -> str:
        if self.status == '??':
            return 'new'
        if 'M' in self.status:
            return 'modified'
        if 'D' in self.status:
            return 'deleted'
        return self.status.strip()


@dataclass
class DiffSource:
    """Diff text plus where it came from."""
    diff: str
    staged: bool

    @property
    def is_empty(self) -> bool:
        return not self.diff.strip()


class GitError(Exception):
    """Raised when git operations fail."""
    pass


def parse_status_output(output: str) -> list[StatusEntry]:
    """Parse 'git status --porcelain' into entries."""
    entries = []
    for line in output.split('\n'):
        if not line.strip():
            continue
        # Renames read "old -> new"; the new path is the one to stage
        path = line[2:].lstrip().split(' -> ')[-1]
        entries.append(StatusEntry(path=path, status=line[:2]))
    return entries


class GitAnalyzer:
    """Reads diffs and history from git and performs commit/tag/push."""

    def __init__(self):
        self._verify_git_available()
        self._verify_in_repo()

    def _run_git(self, *args: str) -> str:
        """Run a git command and return stdout."""
        try:
            result = subprocess.run(
                ['git', *args],
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                errors='replace'
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{e.stderr}")
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")

    def _succeeds(self, *args: str) -> bool:
        try:
            self._run_git(*args)
            return True
        except GitError:
            return False

    def _verify_git_available(self) -> None:
        """Fail fast if git isn't available."""
        try:
            self._run_git('--version')
        except GitError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_in_repo(self) -> None:
        """Fail fast if we're not in a git repository."""
        try:
            self._run_git('rev-parse', '--git-dir')
        except GitError:
            raise GitError("Not inside a git repository")

    # -- working tree -------------------------------------------------------

    def get_root(self) -> str:
        return self._run_git('rev-parse', '--show-toplevel').strip()

    def has_head(self) -> bool:
        """False before the initial commit."""
        return self._succeeds('rev-parse', '--verify', 'HEAD')

    def get_staged_files(self) -> list[str]:
        output = self._run_git('diff', '--cached', '--name-only').strip()
        return output.split('\n') if output else []

    def get_staged_diff(self) -> str:
        return self._run_git('diff', '--cached', '--diff-algorithm=minimal')

    def get_head_diff(self) -> str:
        return self._run_git('diff', 'HEAD', '--diff-algorithm=minimal')

    def get_changes(self) -> DiffSource:
        """Staged diff if anything is staged, else working tree vs HEAD."""
        if self.get_staged_files():
            return DiffSource(diff=self.get_staged_diff(), staged=True)
        if not self.has_head():
            raise GitError("Initial commit: stage files first with 'git add'")
        return DiffSource(diff=self.get_head_diff(), staged=False)

    def get_status(self) -> list[StatusEntry]:
        return parse_status_output(self._run_git('status', '--porcelain'))

    def get_submodule_paths(self) -> set[str]:
        try:
            output = self._run_git('config', '--file', '.gitmodules', '--get-regexp', 'path')
        except GitError:
            return set()
        paths = set()
        for line in output.split('\n'):
            match = re.match(r'submodule\..*\.path\s+(.+)', line)
            if match:
                paths.add(match.group(1))
        return paths

    def stage(self, paths: list[str]) -> None:
        self._run_git('add', '--', *paths)

    def commit(self, message: str) -> None:
        self._run_git('commit', '-m', message)

    def push(self, follow_tags: bool = False) -> None:
        if follow_tags:
            self._run_git('push', '--follow-tags')
        else:
            self._run_git('push')

    # -- history ------------------------------------------------------------

    def get_recent_commit_messages(self, count: int = 3) -> list[str]:
        """Subjects of the last `count` commits (empty before the first commit)."""
        if count <= 0 or not self.has_head():
            return []
        output = self._run_git('log', '--format=%s', f'-{count}')
        return [line for line in output.strip().split('\n') if line]

    def get_latest_tag(self) -> str | None:
        try:
            return self._run_git('describe', '--tags', '--abbrev=0').strip() or None
        except GitError:
            return None

    def tag_exists(self, tag: str) -> bool:
        return bool(self._run_git('tag', '-l', tag).strip())

    def create_tag(self, tag: str, message: str | None = None) -> None:
        if message:
            self._run_git('tag', '-a', tag, '-m', message)
        else:
            self._run_git('tag', tag)

    def get_log_since(self, ref: str) -> str:
        """'git log --oneline' since ref, or the whole log if ref is unknown."""
        try:
            return self._run_git('log', f'{ref}..HEAD', '--oneline')
        except GitError:
            return self._run_git('log', '--oneline')

    def get_diff_stat_since(self, ref: str) -> str:
        try:
            return self._run_git('diff', f'{ref}..HEAD', '--stat')
        except GitError:
            return self._run_git('diff', '--stat')

    def get_diff_since(self, ref: str) -> str:
        try:
            return self._run_git('diff', f'{ref}..HEAD', '--diff-algorithm=minimal')
        except GitError:
            return ''
