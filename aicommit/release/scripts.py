"""Release Scripts - Shell commands from the project's .aic file.

Format:

    [release]
    npm run build

    [publish]
    npm publish

    # comments and blank lines are ignored
"""

import re
import subprocess
from pathlib import Path

from aicommit.output import ARROW, dim, print_error, print_success

AIC_CONFIG_PATH = '.aic'

_SECTION_RE = re.compile(r'^\[(\w+)\]$')

_TEMPLATE_HEADER = """# AICommit Release Configuration
# Commands run during release process
"""

SCRIPT_TEMPLATES = {
    'default': """
[release]
# Add your build commands here
# Example: npm run build

[publish]
# Add your publish commands here
# Example: npm publish
""",
    'go': """
[release]
# Build the project
go build -o dist/

# Run tests
go test ./...

[publish]
# Go modules are published via git tags
""",
    'node': """
[release]
# Build the project
npm run build

# Run tests (uncomment if you have tests)
# npm test

[publish]
# Optional: publish to npm
# npm publish
""",
    'python': """
[release]
# Build the project
python -m build

# Run tests
pytest

[publish]
# Optional: publish to PyPI
# twine upload dist/*
""",
    'rust': """
[release]
# Build the project
cargo build --release

# Run tests
cargo test

[publish]
# Optional: publish to crates.io
# cargo publish
""",
    'elixir': """
[release]
# Run tests
mix test

[publish]
# Optional: publish to Hex
# mix hex.publish
""",
}


def parse_script_config(content: str) -> dict[str, list[str]]:
    """Parse .aic text into {section: [commands]}.

    Commands before the first section header are ignored. A repeated header
    starts the section over.
    """
    config: dict[str, list[str]] = {}
    section = None
    for line in content.split('\n'):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        match = _SECTION_RE.match(stripped)
        if match:
            section = match.group(1)
            config[section] = []
        elif section:
            config[section].append(stripped)
    return config


def load_script_config(root: Path | None = None) -> dict[str, list[str]] | None:
    path = (root or Path.cwd()) / AIC_CONFIG_PATH
    if not path.is_file():
        return None
    return parse_script_config(path.read_text(encoding='utf-8'))


def run_section(section: str, commands: list[str], cwd: Path | None = None) -> bool:
    """Run commands in the shell, stopping at the first failure."""
    for command in commands:
        print(f"{dim(ARROW)} [{section}] {command}")
        try:
            result = subprocess.run(command, shell=True, cwd=cwd, capture_output=True, text=True)
        except OSError as e:
            print_error(f"{command}: {e}")
            return False

        output = (result.stdout.strip() + '\n' + result.stderr.strip()).strip()
        if result.returncode != 0:
            print_error(output or f"Command exited with code {result.returncode}")
            return False
        if output:
            print(dim(output))
        print_success(command)
    return True


def default_script_template(project_type: str) -> str:
    return _TEMPLATE_HEADER + SCRIPT_TEMPLATES.get(project_type, SCRIPT_TEMPLATES['default'])


def init_script_config(project_type: str, root: Path | None = None) -> Path:
    path = (root or Path.cwd()) / AIC_CONFIG_PATH
    path.write_text(default_script_template(project_type), encoding='utf-8')
    return path
