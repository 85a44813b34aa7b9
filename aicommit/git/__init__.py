"""Git Operations Package"""

from aicommit.git.analyzer import DiffSource, GitAnalyzer, GitError, StatusEntry, parse_status_output
from aicommit.git.diff_parser import FileDiff, ParsedDiff, parse_unified_diff
from aicommit.git.diff_processor import (
    ClassifiedFiles,
    DiffProcessor,
    ProcessedDiff,
    ProcessorConfig,
    format_file_list,
    format_stats,
)
from aicommit.git.semantic import SemanticInfo, extract_semantics, format_semantics

__all__ = [
    "GitAnalyzer",
    "GitError",
    "DiffSource",
    "StatusEntry",
    "parse_status_output",
    "FileDiff",
    "ParsedDiff",
    "parse_unified_diff",
    "ClassifiedFiles",
    "DiffProcessor",
    "ProcessedDiff",
    "ProcessorConfig",
    "format_file_list",
    "format_stats",
    "SemanticInfo",
    "extract_semantics",
    "format_semantics",
]
