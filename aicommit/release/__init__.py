"""Release Package - Version bumps, changelogs and release scripts."""

from aicommit.release.project import (
    RELEASE_TYPES,
    ProjectInfo,
    ReleaseError,
    bump_version,
    detect_project,
    update_project_version,
)
from aicommit.release.changelog import (
    CHANGELOG_HEADER,
    ChangelogEntry,
    CommitInfo,
    clean_changelog_response,
    detect_changelog_convention,
    format_changelog_entry,
    generate_changelog,
    insert_changelog_entry,
    parse_changelog,
    parse_commits,
)
from aicommit.release.scripts import default_script_template, parse_script_config, run_section
from aicommit.release.flow import init_release, interactive_release

__all__ = [
    "RELEASE_TYPES",
    "ProjectInfo",
    "ReleaseError",
    "bump_version",
    "detect_project",
    "update_project_version",
    "CHANGELOG_HEADER",
    "ChangelogEntry",
    "CommitInfo",
    "clean_changelog_response",
    "detect_changelog_convention",
    "format_changelog_entry",
    "generate_changelog",
    "insert_changelog_entry",
    "parse_changelog",
    "parse_commits",
    "default_script_template",
    "parse_script_config",
    "run_section",
    "init_release",
    "interactive_release",
]
