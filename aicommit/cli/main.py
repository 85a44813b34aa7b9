"""CLI Main Entry Point"""

import os
import re
import sys
import time

from aicommit.config import load_config
from aicommit.git import GitAnalyzer, GitError, DiffProcessor, ProcessorConfig
from aicommit.git.diff_processor import EXCLUDED_PATTERNS
from aicommit.llm import get_client, LLMError, OllamaClient
from aicommit.prompts import PromptBuilder, PromptConfig
from aicommit.output import (
    success, warning, error, info, dim, bold, print_error, print_success,
    CHECK, RULE, Spinner, colorize_commit_type, status_symbol, change_bar,
)
from aicommit.release import init_release, interactive_release

from aicommit.cli.args import parse_args
from aicommit.cli.commands import display_config, run_setup, run_install_completion, run_warmup
from aicommit.cli.utils import clean_commit_message, copy_to_clipboard, display_options, edit_message, select_files_to_stage, TYPES_PATTERN

PATH_WIDTH = 28
MAX_SELECTABLE_FILES = 15  # Larger working trees skip the file picker


def _processor_config(config):
    """Diff processing settings from user config; excludes extend the defaults."""
    return ProcessorConfig(
        max_total_lines=config.max_diff_lines,
        excluded_patterns=[*EXCLUDED_PATTERNS, *config.exclude_patterns],
        summary_patterns=list(config.summary_patterns),
    )


def _generate_message(client, prompt, timings, validate):
    """Run LLM generation with spinner and return response."""
    t_gen = time.time()
    with Spinner():
        response = client.generate(prompt, validate=validate)
    timings['generate'] = time.time() - t_gen
    return response


def _parse_choose_response(response_content):
    """Parse multi-option response into cleaned options list."""
    parts = re.split(r'\[Option \d+\]\s*', response_content)
    options = [p.strip() for p in parts if p.strip()]

    if len(options) <= 1:
        type_pattern = rf'\n(?=\[?(?:{TYPES_PATTERN})[\(!:])'
        parts = re.split(type_pattern, response_content.strip())
        options = [p.strip() for p in parts if p.strip()]

    cleaned_options = []
    for opt in options:
        opt = clean_commit_message(opt)
        opt = re.sub(rf'^\[?({TYPES_PATTERN})\(', r'\1(', opt)
        lines = opt.split('\n')
        if lines[0].endswith(']'):
            lines[0] = lines[0][:-1]
        cleaned_options.append('\n'.join(lines))

    return cleaned_options if cleaned_options else [clean_commit_message(response_content.strip())]


def _short_path(path):
    return path if len(path) <= PATH_WIDTH else f"...{path[-(PATH_WIDTH - 3):]}"


def _display_context_panel(processed, max_shown, submodules=frozenset()):
    """Show the stat line and each included file with a change bar.

    Args:
        processed: ProcessedDiff for the current changes
        max_shown: Maximum files to display before collapsing (from config)
        submodules: Submodule paths, hidden from the list
    """
    classified = processed.classified
    files = [f for f in classified.included if f.path not in submodules]

    badges = []
    for status, label in (('added', 'added'), ('modified', 'modified'), ('renamed', 'renamed'), ('deleted', 'deleted')):
        count = sum(1 for f in files if f.status == status)
        if count:
            badges.append(f"{status_symbol(status)}{count} {label}")
    if classified.summarized:
        badges.append(dim(f"{len(classified.summarized)} summarized"))
    if classified.excluded:
        badges.append(dim(f"{len(classified.excluded)} excluded"))

    lines_stat = f"{success('+' + str(processed.parsed.total_additions))} {error('-' + str(processed.parsed.total_deletions))} lines"
    print(f"{bold('Files')}  {lines_stat}")
    if badges:
        print('  '.join(badges))
    print(dim(RULE * 60))
    if not files:
        return

    max_changes = max(f.total_changes for f in files) or 1
    add_width = max(len(str(f.additions)) for f in files) + 1
    del_width = max(len(str(f.deletions)) for f in files) + 1

    shown = files[:max_shown]
    for f in shown:
        adds = f"+{f.additions}".rjust(add_width)
        dels = f"-{f.deletions}".rjust(del_width)
        adds = success(adds) if f.additions else dim(adds)
        dels = error(dels) if f.deletions else dim(dels)
        bar = change_bar(f.additions, f.deletions, max_changes)
        print(f"{status_symbol(f.status)} {_short_path(f.header).ljust(PATH_WIDTH)} {adds} {dels}  {bar}")

    remaining = len(files) - len(shown)
    if remaining > 0:
        print(dim(f"  ... and {remaining} more files"))


def _display_recent_commits(recent):
    if not recent:
        return
    print()
    print(bold("Recent commits"))
    for subject in recent:
        print(dim(f"  {subject}"))


def _display_message(message):
    """Display commit message with horizontal rules and colored type."""
    colored = colorize_commit_type(message)
    lines = colored.split('\n')
    # Use raw message for width calculation (no ANSI codes)
    raw_lines = message.split('\n')
    width = max((len(line) for line in raw_lines), default=40)
    print(f"\n{dim(RULE * width)}")
    print(bold(lines[0]))
    for line in lines[1:]:
        print(line)
    print(dim(RULE * width))


def _copy_and_report(message, no_copy):
    """Copy message to clipboard and print result."""
    if no_copy:
        return
    copied, reason = copy_to_clipboard(message)
    if copied:
        print(f"{success(CHECK)} Copied to clipboard!")
    else:
        print(f"{warning('!')} Could not copy to clipboard{': ' + reason if reason else ''}")
        print(dim("  Select the message above to copy manually."))


def _handle_subcommands(args):
    """Handle subcommands that exit early.

    Returns:
        tuple: (exit_code, should_exit) - exit_code if should_exit is True
    """
    if args.install_completion:
        return run_install_completion(), True
    if args.display_config:
        return display_config(), True
    if args.setup:
        return run_setup(), True
    if args.release_init:
        return init_release(), True
    return 0, False


def _get_provider_and_model(args, config):
    """Resolve provider and model from args, env, or config.

    Precedence: CLI args > environment variables > config file
    """
    provider = args.provider or os.environ.get('AIC_PROVIDER') or config.provider
    model = args.model or os.environ.get('AIC_MODEL') or config.model
    return provider, model


def _offer_file_selection(analyzer):
    """Let the user stage a subset of changed files when nothing is staged."""
    if analyzer.get_staged_files() or not analyzer.has_head():
        return
    submodules = analyzer.get_submodule_paths()
    entries = [e for e in analyzer.get_status() if e.path not in submodules]
    if not 0 < len(entries) <= MAX_SELECTABLE_FILES:
        return
    selected = select_files_to_stage(entries)
    if selected:
        analyzer.stage(selected)


def _prepare_changes(is_interactive=False):
    """Get and validate changes from git.

    Returns:
        tuple: (analyzer, changes, timings) with analyzer None on failure
    """
    timings = {}
    t0 = time.time()
    try:
        analyzer = GitAnalyzer()
        if is_interactive:
            _offer_file_selection(analyzer)
            t0 = time.time()
        changes = analyzer.get_changes()
    except GitError as e:
        print_error(str(e))
        return None, None, {'git': time.time() - t0}
    timings['git'] = time.time() - t0

    if changes.is_empty:
        print_error("No changes to commit. Stage files with 'git add' or edit tracked files.")
        return None, None, timings

    return analyzer, changes, timings


def _initialize_client(provider, model, processed, is_pipe, timings):
    """Initialize LLM client with optional warmup for Ollama.

    Returns:
        tuple: (client, t0) where t0 is the start time for total LLM timing
    """
    t0 = time.time()
    client = get_client(provider=provider, model=model)
    if not is_pipe:
        print(f"\nAnalyzing {bold(str(processed.included_files))} files using {info(client.name)}... ", end='', flush=True)

    if isinstance(client, OllamaClient) and not client.is_model_loaded():
        if not is_pipe:
            print(dim("loading model... "), end='', flush=True)
        t_warmup = time.time()
        warmup_success = client.warmup()
        timings['warmup'] = time.time() - t_warmup
        if not warmup_success and not is_pipe:
            print(warning("warmup failed, generation may be slow... "), end='', flush=True)

    return client, t0


def _handle_response(args, response, is_pipe, config):
    """Process LLM response into final commit message.

    Returns:
        tuple: (message, should_return, return_code) - if should_return, exit with return_code
    """
    if args.choose is not None:
        options = _parse_choose_response(response.content)
        if is_pipe:
            message = options[0]
        else:
            print(success("done!"))
            idx = display_options(options)
            if idx is None:
                print(dim("Cancelled."))
                return None, True, 0
            message = options[idx]
    else:
        message = clean_commit_message(response.content.strip())
        if not is_pipe:
            print(success("done!"))

    if args.jira:
        ticket_prefix = args.ticket_prefix or config.ticket_prefix
        message = f"{message}\n\n{ticket_prefix}: {args.jira.upper()}"

    return message, False, 0


def _print_verbose_stats(args, is_pipe, prompt, response, processed, timings):
    """Print verbose timing and token statistics."""
    if not args.verbose or is_pipe:
        return
    print()
    print(dim(f"  Prompt: ~{len(prompt)//4} tokens ({len(prompt)} chars), diff ~{processed.estimated_tokens} tokens"))
    if processed.truncated:
        print(dim("  Diff truncated to fit the line budget"))
    print(dim(f"  Response: {response.tokens_used} tokens"))
    if response.tokens_used > 0 and timings.get('generate'):
        tok_per_sec = response.tokens_used / timings['generate']
        print(dim(f"  Speed: {tok_per_sec:.1f} tokens/sec"))
    print(dim(f"  Timings: git={timings['git']:.2f}s, diff={timings['diff']:.2f}s, prompt={timings['prompt']:.2f}s, generate={timings.get('generate', 0):.2f}s"))


def _commit_changes(analyzer, changes, processed, message, push):
    """Commit (staging the diffed files first when nothing was staged)."""
    try:
        if not changes.staged:
            paths = []
            for f in processed.parsed.files:
                paths.extend(p for p in (f.old_path, f.path) if p)
            analyzer.stage(paths)
        analyzer.commit(message)
        print_success("Committed")
        if push:
            with Spinner("Pushing..."):
                analyzer.push()
            print_success("Pushed to remote")
    except GitError as e:
        print_error(str(e))
        return 1
    return 0


def _handle_interactive_action(message, prompt_config, processed):
    """Handle the post-generation prompt.

    Returns:
        tuple: (action, new_message, new_prompt) where action is 'done', 'commit', 'edited', or 'regenerate'
    """
    try:
        action = input(f"\n{dim('(c)ommit, (e)dit, (r)egenerate, or Enter to accept: ')}").strip().lower()
    except (KeyboardInterrupt, EOFError):
        return 'done', message, None

    if action == 'c':
        return 'commit', message, None
    if action == 'e':
        edited = edit_message(message)
        if edited:
            return 'edited', edited, None
        return 'done', message, None
    if action == 'r':
        try:
            regen_hint = input(f"{dim('  Hint (Enter to skip): ')}").strip()
        except (KeyboardInterrupt, EOFError):
            return 'done', message, None
        if regen_hint:
            prompt_config.hint = regen_hint
        new_prompt = PromptBuilder().build(processed, prompt_config)
        print("\nRegenerating... ", end='', flush=True)
        return 'regenerate', message, new_prompt

    return 'done', message, None


def _generate_commit_flow(args, config, provider, model):
    """Main commit message generation flow.

    Returns:
        int: Exit code
    """
    is_pipe = not sys.stdout.isatty()
    is_interactive = sys.stdin.isatty() and not is_pipe

    analyzer, changes, timings = _prepare_changes(is_interactive and not (args.commit or args.push))
    if analyzer is None:
        return 1

    t0 = time.time()
    processed = DiffProcessor(_processor_config(config)).process(changes.diff)
    timings['diff'] = time.time() - t0

    if processed.parsed.is_empty:
        print_error("Nothing to summarize: the diff has no file changes.")
        return 1
    if not processed.classified.has_relevant:
        print(dim(f"No relevant changes (all {processed.total_files} files excluded)."))
        return 0

    recent = analyzer.get_recent_commit_messages(config.recent_commits)

    if not is_pipe:
        if not changes.staged:
            print(dim("Nothing staged; describing all changes to tracked files.\n"))
        _display_context_panel(processed, config.max_file_display, analyzer.get_submodule_paths())
        _display_recent_commits(recent)

    num_options = 1
    if args.choose is not None:
        num_options = max(2, min(args.choose, 4))

    t0 = time.time()
    prompt_config = PromptConfig(
        hint=args.hint,
        selected_type=args.type,
        recent_commits=recent,
        num_options=num_options,
        style=config.style,
        include_body=config.include_body,
        max_subject_length=config.max_subject_length,
    )
    prompt = PromptBuilder().build(processed, prompt_config)
    timings['prompt'] = time.time() - t0

    try:
        client, t0 = _initialize_client(provider, model, processed, is_pipe, timings)
    except LLMError as e:
        if not is_pipe:
            print()
        print_error(str(e))
        return 1

    # Plain subjects have no type prefix to validate
    validate = config.style != 'simple'

    while True:
        try:
            response = _generate_message(client, prompt, timings, validate)
            timings['llm_total'] = time.time() - t0
        except LLMError as e:
            if not is_pipe:
                print()
            print_error(str(e))
            return 1

        _print_verbose_stats(args, is_pipe, prompt, response, processed, timings)

        message, should_return, return_code = _handle_response(args, response, is_pipe, config)
        if should_return:
            return return_code

        # Pipe mode: output raw message and exit
        if is_pipe:
            print(message)
            return 0

        _display_message(message)

        if args.commit or args.push:
            return _commit_changes(analyzer, changes, processed, message, args.push)

        _copy_and_report(message, args.no_copy)

        if not is_interactive:
            break

        action, message, new_prompt = _handle_interactive_action(message, prompt_config, processed)
        if action == 'commit':
            return _commit_changes(analyzer, changes, processed, message, push=False)
        if action == 'edited':
            _display_message(message)
            _copy_and_report(message, args.no_copy)
            break
        if action == 'regenerate':
            prompt = new_prompt
            continue
        break

    return 0


def main() -> int:
    """Main entry point for the CLI."""
    args = parse_args()

    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    config = load_config()
    provider, model = _get_provider_and_model(args, config)

    if args.warmup:
        return run_warmup(provider, model)

    if args.release:
        return interactive_release(args.release, provider=provider, model=model)

    if args.style:
        config.style = args.style
    if args.no_body:
        config.include_body = False

    try:
        return _generate_commit_flow(args, config, provider, model)
    except KeyboardInterrupt:
        print(dim("\nCancelled."))
        return 0


if __name__ == '__main__':
    sys.exit(main())
