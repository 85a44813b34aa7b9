"""CLI Commands"""

import os
import sys
import time

from aicommit.config import Config, load_config, save_config, get_config_path
from aicommit.llm import LLMError, OllamaClient
from aicommit.output import bold, dim, info, print_success, print_error

PROVIDER_CHOICES = [
    ('auto', 'auto - first available provider (default)'),
    ('ollama', 'Ollama (free, local)'),
    ('claude', 'Claude API (ANTHROPIC_API_KEY)'),
    ('cloudflare', 'Cloudflare Workers AI (AIC_CLOUDFLARE_ACCOUNT_ID / AIC_CLOUDFLARE_API_TOKEN)'),
    ('claude-cli', 'Claude CLI (claude)'),
]

STYLE_CHOICES = [
    ('conventional', 'type(scope): subject with bullets (default)'),
    ('simple', 'plain subject with bullets'),
    ('detailed', 'type(scope): subject with more bullets'),
]


def display_config() -> int:
    """Display current configuration."""
    config = load_config()
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")

    if config_path:
        print(f"  {dim('Loaded from:')} {config_path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no .aicrc found)")

    overrides = [(name, os.environ.get(name)) for name in ('AIC_PROVIDER', 'AIC_MODEL', 'AIC_TIMEOUT')]
    overrides = [(name, value) for name, value in overrides if value]
    if overrides:
        print(f"  {dim('Environment overrides:')}")
        for name, value in overrides:
            print(f"    {name}={value}")

    print()
    print(f"  {bold('Settings:')}")
    print(f"    provider:           {info(config.provider)}")
    print(f"    model:              {info(config.model or 'auto')}")
    print(f"    style:              {info(config.style)}")
    print(f"    include_body:       {info(str(config.include_body).lower())}")
    print(f"    max_subject_length: {info(str(config.max_subject_length))}")
    print(f"    max_file_display:   {info(str(config.max_file_display))}")
    print(f"    recent_commits:     {info(str(config.recent_commits))}")
    print(f"    ticket_prefix:      {info(config.ticket_prefix)}")
    print(f"    max_diff_lines:     {info(str(config.max_diff_lines))}")
    for name in ("exclude_patterns", "summary_patterns"):
        patterns = getattr(config, name)
        print(f"    {name + ':':<19} {info(', '.join(patterns)) if patterns else dim('none')}")

    print(f"\n  {dim('Config locations:')}")
    print("    Local:  .aicrc (in current directory)")
    print("    Global: ~/.aicrc")
    print(f"\n  {dim('Run')} aic --setup {dim('to configure')}\n")

    return 0


def _choose(title: str, choices: list[tuple[str, str]]) -> str:
    """Numbered menu; Enter picks the first entry."""
    print(f"{title}\n")
    for i, (_, label) in enumerate(choices, 1):
        print(f"  {i}. {label}")
    print()
    while True:
        choice = input(f"Select [1-{len(choices)}] (Enter for default): ").strip()
        if not choice:
            return choices[0][0]
        if choice.isdigit() and 1 <= int(choice) <= len(choices):
            return choices[int(choice) - 1][0]


def run_setup() -> int:
    """Quick setup wizard."""
    display_config()
    print(f"{bold('Setup Wizard')}\n")

    try:
        provider = _choose("Choose provider:", PROVIDER_CHOICES)

        model = None
        if provider == 'ollama':
            print("\nRecommended: llama3.2:3b, gemma3:4b, mistral:7b\n")
            model = input("Model (Enter for default): ").strip() or None
        elif provider != 'auto':
            model = input("\nModel (Enter for default): ").strip() or None

        print()
        style = _choose("Commit message style:", STYLE_CHOICES)

        print("\nInclude bullet points in commit body? [y/N]: ", end='')
        include_body = input().strip().lower() == 'y'

        defaults = Config()
        print(f"\nMax subject line length (Enter for {defaults.max_subject_length}): ", end='')
        max_len_input = input().strip()
    except (KeyboardInterrupt, EOFError):
        print(dim("\nSetup cancelled."))
        return 0

    config = Config(
        provider=provider,
        model=model,
        style=style,
        include_body=include_body,
        max_subject_length=int(max_len_input) if max_len_input.isdigit() else defaults.max_subject_length,
    )
    path = save_config(config, global_config=True)

    print_success(f"Saved to {path}")
    return 0


def run_install_completion() -> int:
    """Install shell tab completion."""
    shell = os.environ.get('SHELL', '')
    register = 'eval "$(register-python-argcomplete aic)"'
    powershell = "register-python-argcomplete --shell powershell aic | Out-String | Invoke-Expression"

    print(f"\n{bold('Tab Completion Setup')}\n")

    if 'zsh' in shell or 'bash' in shell:
        rc_file = os.path.expanduser('~/.zshrc' if 'zsh' in shell else '~/.bashrc')
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {register}\n")
        print(f"Then run: {dim('source ' + rc_file)}")
    elif sys.platform == 'win32':
        print("For PowerShell, run:\n")
        print(f"  {powershell}\n")
        print("To make it permanent, add to your $PROFILE:\n")
        print(f"  {powershell}")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print(f"  {register}\n")
        print(f"  {dim('# PowerShell')}")
        print(f"  {powershell}\n")
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish aic | source")

    print(f"\n{dim('After setup, press TAB to autocomplete flags.')}")
    return 0


def run_warmup(provider: str | None, model: str | None) -> int:
    """Pre-load Ollama model into memory."""
    if provider and provider not in ('ollama', 'auto'):
        print_error("--warmup only works with Ollama (local models)")
        return 1

    try:
        client = OllamaClient(model=model)
    except LLMError as e:
        print_error(f"Failed to connect to Ollama: {e}")
        return 1

    if client.is_model_loaded():
        print_success(f"Model {bold(client.model)} is already loaded")
        return 0

    print(f"Loading {bold(client.model)}... ", end='', flush=True)
    start = time.time()
    client.warmup()
    elapsed = time.time() - start

    if client.is_model_loaded():
        print_success(f"ready! ({elapsed:.1f}s)")
        print(dim("Model will stay loaded for ~10 minutes"))
        return 0
    print_error("failed to load model")
    return 1
