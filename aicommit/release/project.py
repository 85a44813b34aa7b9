"""Project Detection - Find the version file and bump it."""

import json
import re
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable

RELEASE_TYPES = ['patch', 'minor', 'major']


class ReleaseError(Exception):
    """Raised when a release cannot proceed."""
    pass


@dataclass
class ProjectInfo:
    """Detected project and the files that carry its version."""
    type: str
    name: str
    version: str
    metadata_files: list[str] = field(default_factory=list)


def _replace_first(pattern: str, content: str, version: str) -> str:
    return re.sub(pattern, lambda m: f"{m.group(1)}{version}{m.group(3)}", content, count=1)


# -- node ---------------------------------------------------------------------

def _detect_node(content: str) -> tuple[str, str] | None:
    try:
        pkg = json.loads(content)
    except json.JSONDecodeError:
        return None
    if isinstance(pkg, dict) and pkg.get('version'):
        return pkg.get('name') or 'unknown', pkg['version']
    return None


def _update_node(content: str, version: str) -> str:
    pkg = json.loads(content)
    pkg['version'] = version
    return json.dumps(pkg, indent=2, ensure_ascii=False) + '\n'


# -- python -------------------------------------------------------------------

_PYPROJECT_VERSION = r'(\[(?:project|tool\.poetry)\][^\[]*?\bversion\s*=\s*["\'])([^"\']+)(["\'])'
_SETUP_VERSION = r'(\bversion\s*=\s*["\'])([^"\']+)(["\'])'
_DUNDER_VERSION = r'(__version__\s*=\s*["\'])([^"\']+)(["\'])'


def _detect_pyproject(content: str) -> tuple[str, str] | None:
    # Only a static [project]/[tool.poetry] version; dynamic versions are left alone
    version = re.search(_PYPROJECT_VERSION, content)
    if not version:
        return None
    name = re.search(r'\[(?:project|tool\.poetry)\][^\[]*?\bname\s*=\s*["\']([^"\']+)["\']', content)
    return (name.group(1) if name else 'unknown'), version.group(2)


def _detect_setup(content: str) -> tuple[str, str] | None:
    version = re.search(_SETUP_VERSION, content)
    if not version:
        return None
    name = re.search(r'\bname\s*=\s*["\']([^"\']+)["\']', content)
    return (name.group(1) if name else 'unknown'), version.group(2)


def _detect_dunder(content: str) -> tuple[str, str] | None:
    version = re.search(_DUNDER_VERSION, content)
    return ('unknown', version.group(2)) if version else None


# -- rust ---------------------------------------------------------------------

_CARGO_VERSION = r'(\[package\][\s\S]*?version\s*=\s*["\'])([^"\']+)(["\'])'


def _detect_rust(content: str) -> tuple[str, str] | None:
    name = re.search(r'\[package\][\s\S]*?name\s*=\s*["\']([^"\']+)["\']', content)
    version = re.search(_CARGO_VERSION, content)
    if version:
        return (name.group(1) if name else 'unknown'), version.group(2)
    return None


def _update_rust(content: str, version: str) -> str:
    return _replace_first(_CARGO_VERSION, content, version)


# -- go -----------------------------------------------------------------------

_GO_VERSION = r'((?:Version|VERSION)\s*=\s*["\'])([^"\']+)(["\'])'


def _go_version(content: str) -> str | None:
    match = re.search(_GO_VERSION, content)
    return match.group(2) if match else None


def _detect_go(content: str) -> tuple[str, str] | None:
    module = re.search(r'module\s+(\S+)', content)
    if not module:
        return None
    return module.group(1).split('/')[-1] or 'unknown', _go_version(content) or '0.0.0'


def _update_go(content: str, version: str) -> str:
    return _replace_first(_GO_VERSION, content, version)


# -- elixir -------------------------------------------------------------------

def _detect_elixir(content: str) -> tuple[str, str] | None:
    version = re.search(r'version:\s*["\']([^"\']+)["\']', content)
    app = re.search(r'app:\s*:(\w+)', content)
    if version:
        return (app.group(1) if app else 'unknown'), version.group(1)
    return None


def _update_elixir(content: str, version: str) -> str:
    return _replace_first(r'(version:\s*["\'])([^"\']+)(["\'])', content, version)


@dataclass
class VersionFile:
    """How to read and rewrite the version in one metadata file."""
    detect: Callable[[str], tuple[str, str] | None]
    update: Callable[[str, str], str]


# Project types and their files are checked in this order
METADATA_HANDLERS: dict[str, dict[str, VersionFile]] = {
    'node': {'package.json': VersionFile(_detect_node, _update_node)},
    'python': {
        'pyproject.toml': VersionFile(_detect_pyproject, partial(_replace_first, _PYPROJECT_VERSION)),
        'setup.py': VersionFile(_detect_setup, partial(_replace_first, _SETUP_VERSION)),
        '__version__.py': VersionFile(_detect_dunder, partial(_replace_first, _DUNDER_VERSION)),
    },
    'rust': {'Cargo.toml': VersionFile(_detect_rust, _update_rust)},
    'go': {
        'go.mod': VersionFile(_detect_go, _update_go),
        'version.go': VersionFile(_detect_go, _update_go),
    },
    'elixir': {'mix.exs': VersionFile(_detect_elixir, _update_elixir)},
}


def detect_project(root: Path | None = None) -> ProjectInfo | None:
    """Return the first project whose metadata file yields a version."""
    root = root or Path.cwd()
    for project_type, version_files in METADATA_HANDLERS.items():
        for filename, handler in version_files.items():
            path = root / filename
            if not path.is_file():
                continue
            found = handler.detect(path.read_text(encoding='utf-8'))
            if found:
                name, version = found
                files = [filename]
                # go.mod has no version; version.go carries it when present
                if project_type == 'go' and (root / 'version.go').is_file():
                    files.append('version.go')
                    version = _go_version((root / 'version.go').read_text(encoding='utf-8')) or version
                return ProjectInfo(type=project_type, name=name, version=version, metadata_files=files)
    return None


def bump_version(current: str, release_type: str) -> str:
    """Bump a dotted version; missing or non-numeric parts count as 0."""
    if release_type not in RELEASE_TYPES:
        raise ReleaseError(f"Unknown release type '{release_type}'. Use one of: {', '.join(RELEASE_TYPES)}")

    parts = current.lstrip('v').split('.')
    numbers = []
    for i in range(3):
        match = re.match(r'\d+', parts[i]) if i < len(parts) else None
        numbers.append(int(match.group(0)) if match else 0)
    major, minor, patch = numbers

    if release_type == 'major':
        return f"{major + 1}.0.0"
    if release_type == 'minor':
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def update_project_version(project: ProjectInfo, new_version: str, root: Path | None = None) -> list[Path]:
    """Rewrite the version in every metadata file; returns the files written."""
    root = root or Path.cwd()
    version_files = METADATA_HANDLERS[project.type]
    written = []
    for filename in project.metadata_files:
        path = root / filename
        if not path.is_file():
            continue
        content = path.read_text(encoding='utf-8')
        updated = version_files[filename].update(content, new_version)
        if updated != content:
            path.write_text(updated, encoding='utf-8')
            written.append(path)
    return written
