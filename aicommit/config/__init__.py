"""Configuration Management Package

Looks for config in multiple places (in order):

1. .aicrc in current directory (project-specific)
2. .aicrc in home directory (global default)
3. Built-in defaults

Config format (JSON):
{
    "provider": "ollama",
    "model": "llama3.2:3b",
    "style": "conventional",
    "summary_patterns": ["^CHANGELOG\\.md$"],
    "exclude_patterns": ["^fixtures/"]
}

Pattern lists are regexes matched against repo-relative paths.
exclude_patterns extends the built-in exclusions rather than replacing them.
"""

import json
import re
import sys
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional

# Valid configuration values
VALID_PROVIDERS = {"auto", "claude", "claude-cli", "cloudflare", "ollama"}
VALID_STYLES = {"simple", "conventional", "detailed"}


def _valid_patterns(value) -> tuple[list[str], list]:
    """Split a pattern list into compilable regexes and rejects."""
    if not isinstance(value, list):
        return [], [value]
    good, bad = [], []
    for pattern in value:
        try:
            re.compile(pattern)
        except (re.error, TypeError):
            bad.append(pattern)
            continue
        good.append(pattern)
    return good, bad


@dataclass
class Config:
    """User configuration with sensible defaults."""
    provider: str = "auto"
    model: Optional[str] = None
    style: str = "conventional"
    include_body: bool = False
    max_subject_length: int = 72
    ticket_prefix: str = "Refs"
    max_file_display: int = 8  # Max files shown before collapsing list
    recent_commits: int = 3  # Recent subjects sent as context, 0 disables
    max_diff_lines: int = 1500  # Budget for the compressed diff
    exclude_patterns: list[str] = field(default_factory=list)
    summary_patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def validate(self) -> list[str]:
        """Validate config values and return list of warnings.

        Invalid values are replaced with defaults silently after warning.
        """
        warnings = []
        defaults = Config()

        if self.provider not in VALID_PROVIDERS:
            warnings.append(f"Invalid provider '{self.provider}', using '{defaults.provider}'")
            self.provider = defaults.provider

        if self.style not in VALID_STYLES:
            warnings.append(f"Invalid style '{self.style}', using '{defaults.style}'")
            self.style = defaults.style

        if not isinstance(self.max_subject_length, int) or self.max_subject_length <= 0:
            warnings.append(f"Invalid max_subject_length '{self.max_subject_length}', using {defaults.max_subject_length}")
            self.max_subject_length = defaults.max_subject_length

        if not isinstance(self.max_file_display, int) or self.max_file_display <= 0:
            warnings.append(f"Invalid max_file_display '{self.max_file_display}', using {defaults.max_file_display}")
            self.max_file_display = defaults.max_file_display

        if not isinstance(self.recent_commits, int) or self.recent_commits < 0:
            warnings.append(f"Invalid recent_commits '{self.recent_commits}', using {defaults.recent_commits}")
            self.recent_commits = defaults.recent_commits

        if not isinstance(self.max_diff_lines, int) or self.max_diff_lines <= 0:
            warnings.append(f"Invalid max_diff_lines '{self.max_diff_lines}', using {defaults.max_diff_lines}")
            self.max_diff_lines = defaults.max_diff_lines

        for name in ("exclude_patterns", "summary_patterns"):
            patterns, bad = _valid_patterns(getattr(self, name))
            for pattern in bad:
                warnings.append(f"Ignoring invalid {name} entry {pattern!r}")
            setattr(self, name, patterns)

        return warnings

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        # Validate and print warnings to stderr
        for warning in config.validate():
            print(f"Config warning: {warning}", file=sys.stderr)
        return config


class ConfigManager:
    """Manages loading and saving configuration."""

    CONFIG_FILENAME = ".aicrc"

    def __init__(self):
        self._config: Optional[Config] = None
        self._config_path: Optional[Path] = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        for path in (Path.cwd() / self.CONFIG_FILENAME, Path.home() / self.CONFIG_FILENAME):
            if path.exists():
                self._config = self._load_from_file(path)
                self._config_path = path
                return self._config

        self._config = Config()
        return self._config

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return Config.from_dict(data)
        except (json.JSONDecodeError, ValueError, OSError) as e:
            print(f"Warning: Could not load {path}: {e}", file=sys.stderr)
            return Config()

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = Path.home() / self.CONFIG_FILENAME if global_config else Path.cwd() / self.CONFIG_FILENAME
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        return path

    def get_config_path(self) -> Optional[Path]:
        return self._config_path


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def save_config(config: Config, global_config: bool = True) -> Path:
    return _manager.save(config, global_config)


def get_config_path() -> Optional[Path]:
    return _manager.get_config_path()


__all__ = [
    "Config",
    "ConfigManager",
    "load_config",
    "save_config",
    "get_config_path",
    "VALID_PROVIDERS",
    "VALID_STYLES",
]
