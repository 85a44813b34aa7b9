"""Semantic Extractor - Surface declared names from added code.

A cheap lexical pass over the added lines of a diff, not a parser. Each
category is a pure ``text -> list of names`` function registered in
EXTRACTORS; supporting another language idiom means appending a regex to
the matching *_PATTERNS list.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable

from aicommit.git.diff_parser import STATUS_DELETED, FileDiff, added_lines

FUNCTION_PATTERNS = [
    re.compile(r'(?:function|async function)\s+(\w+)\s*\('),
    re.compile(r'(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?\('),
    re.compile(r'(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?\w*\s*=>'),
]

TYPE_PATTERNS = [
    re.compile(r'(?:interface|type)\s+(\w+)'),
]

CLASS_PATTERNS = [
    re.compile(r'class\s+(\w+)'),
]

EXPORT_PATTERNS = [
    re.compile(
        r'export\s+(?:default\s+)?'
        r'(?:function|const|class|interface|type|async function)\s+(\w+)'
    ),
]

# Display caps per category when formatting for a prompt
FORMAT_LIMITS = {
    'functions': 10,
    'classes': 5,
    'types': 5,
    'exports': 5,
}


@dataclass(frozen=True)
class SemanticInfo:
    """Candidate names found in added code."""
    functions: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.functions or self.types or self.classes or self.exports)


def unique(names: Iterable[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(names))


def _find_all(patterns: list[re.Pattern], text: str) -> list[str]:
    names = []
    for pattern in patterns:
        names.extend(m.group(1) for m in pattern.finditer(text))
    return unique(names)


def find_functions(text: str) -> list[str]:
    return _find_all(FUNCTION_PATTERNS, text)


def find_types(text: str) -> list[str]:
    return _find_all(TYPE_PATTERNS, text)


def find_classes(text: str) -> list[str]:
    return _find_all(CLASS_PATTERNS, text)


def find_exports(text: str) -> list[str]:
    return _find_all(EXPORT_PATTERNS, text)


EXTRACTORS: dict[str, Callable[[str], list[str]]] = {
    'functions': find_functions,
    'types': find_types,
    'classes': find_classes,
    'exports': find_exports,
}


def collect_added_code(files: Iterable[FileDiff]) -> str:
    """Concatenate added lines of every non-deleted file, in order."""
    chunks = []
    for file in files:
        if file.status == STATUS_DELETED:
            continue
        chunks.append('\n'.join(added_lines(file.diff)))
    return '\n'.join(chunks)


def extract_semantics(files: Iterable[FileDiff]) -> SemanticInfo:
    """Run every extractor over the added code of the given files."""
    code = collect_added_code(files)
    found = {name: tuple(extract(code)) for name, extract in EXTRACTORS.items()}
    return SemanticInfo(**found)


def format_semantics(semantics: SemanticInfo) -> str:
    """Render non-empty categories as 'Label: a, b, c' lines."""
    parts = []
    for label, key in (
        ('Functions', 'functions'),
        ('Classes', 'classes'),
        ('Types', 'types'),
        ('Exports', 'exports'),
    ):
        names = getattr(semantics, key)
        if names:
            parts.append(f"{label}: {', '.join(names[:FORMAT_LIMITS[key]])}")
    return '\n'.join(parts)
