"""Release Flow - Bump, changelog, commit, tag and push in one go."""

from pathlib import Path

from aicommit.git import GitAnalyzer, GitError
from aicommit.llm import LLMError, get_client
from aicommit.output import (
    ARROW, Spinner, bold, dim, info, success,
    print_error, print_rule, print_success, print_warning,
)
from aicommit.release.changelog import (
    CHANGELOG_PATH,
    detect_changelog_convention,
    format_changelog_entry,
    generate_changelog,
    initialize_changelog,
    read_changelog,
    write_changelog,
)
from aicommit.release.project import ReleaseError, bump_version, detect_project, update_project_version
from aicommit.release.scripts import AIC_CONFIG_PATH, init_script_config, load_script_config, run_section

SUPPORTED_FILES = 'package.json, pyproject.toml, setup.py, Cargo.toml, go.mod, mix.exs'


def _confirm(question: str, default: bool = True) -> bool:
    """Yes/no prompt. Ctrl-C and EOF count as no."""
    suffix = '[Y/n]' if default else '[y/N]'
    try:
        answer = input(f"{question} {dim(suffix)} ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        print()
        return False
    if not answer:
        return default
    return answer in ('y', 'yes')


def _write_changelog_entry(analyzer: GitAnalyzer, root: Path, version: str, prev_tag: str | None,
                           provider: str, model: str | None) -> bool:
    """Generate the changelog entry and write it. Returns False if skipped."""
    convention = detect_changelog_convention(read_changelog(root))
    if convention == 'none':
        initialize_changelog(root)
    elif convention == 'other':
        print_warning("Non-standard changelog detected")
        if _confirm("Migrate to Keep a Changelog format?", default=False):
            initialize_changelog(root)

    client = get_client(provider=provider, model=model)
    with Spinner(f"Generating changelog with {client.name}..."):
        content = generate_changelog(analyzer, client, version, prev_tag)
    entry = format_changelog_entry(version, content)
    write_changelog(entry, root)

    print_success("Changelog generated")
    print()
    print_rule()
    print(entry.strip())
    print_rule()
    print()
    return True


def interactive_release(release_type: str, provider: str = 'auto', model: str | None = None) -> int:
    """Run the full release sequence. Returns the process exit code."""
    try:
        analyzer = GitAnalyzer()
        root = Path(analyzer.get_root())
    except GitError as e:
        print_error(str(e))
        return 1

    project = detect_project(root)
    if not project:
        print_error(f"Could not detect project type. Supported: {SUPPORTED_FILES}")
        return 1
    print_success(f"Detected {project.type} project: {bold(project.name)} v{project.version}")

    try:
        new_version = bump_version(project.version, release_type)
    except ReleaseError as e:
        print_error(str(e))
        return 1
    tag = f"v{new_version}"

    if analyzer.tag_exists(tag):
        print_error(f"Tag {tag} already exists. Delete it first with: git tag -d {tag}")
        return 1

    prev_tag = analyzer.get_latest_tag()
    print(f"{info('Release:')} {project.version} {ARROW} {success(new_version)}")

    if not _confirm(f"Create release {tag}?"):
        print(dim("Release cancelled."))
        return 0

    # Version files first so build scripts embed the new version
    try:
        written = update_project_version(project, new_version, root)
    except (OSError, ValueError) as e:
        print_error(f"Version update failed: {e}")
        return 1
    print_success(f"Updated {', '.join(p.name for p in written) or 'nothing'} to {tag}")

    scripts = load_script_config(root) or {}
    if scripts.get('release'):
        if not run_section('release', scripts['release'], cwd=root):
            print_error("Release scripts failed")
            if not _confirm("Continue with release anyway?", default=False):
                return 1

    try:
        _write_changelog_entry(analyzer, root, new_version, prev_tag, provider, model)
    except (LLMError, ReleaseError, GitError) as e:
        print_warning(f"Changelog generation failed: {e}")
        if not _confirm("Continue without changelog?", default=False):
            return 1

    try:
        to_stage = [f for f in (CHANGELOG_PATH, *project.metadata_files) if (root / f).is_file()]
        analyzer.stage(to_stage)
        analyzer.commit(f"chore: release {tag}")
        print_success("Committed release")
        analyzer.create_tag(tag, f"Release {new_version}")
        print_success(f"Tagged {tag}")
    except GitError as e:
        print_error(str(e))
        return 1

    if not _confirm("Push release (with tags)?"):
        print_success(f"Released {tag}! Run: git push --follow-tags")
        return 0

    try:
        with Spinner("Pushing..."):
            analyzer.push(follow_tags=True)
    except GitError as e:
        print_error(str(e))
        print_warning(f"Released {tag} locally. Push manually: git push --follow-tags")
        return 1
    print_success("Pushed to remote")

    if scripts.get('publish') and _confirm("Run publish scripts?"):
        if not run_section('publish', scripts['publish'], cwd=root):
            print_error("Publish scripts failed")
            return 1

    print_success(f"Released {tag}!")
    return 0


def init_release() -> int:
    """Create CHANGELOG.md and a .aic script template for the project."""
    try:
        root = Path(GitAnalyzer().get_root())
    except GitError as e:
        print_error(str(e))
        return 1

    project = detect_project(root)
    project_type = project.type if project else 'default'

    if (root / AIC_CONFIG_PATH).is_file() and not _confirm(f"{AIC_CONFIG_PATH} file already exists. Overwrite?", default=False):
        print(dim("Cancelled."))
        return 0

    existing = read_changelog(root)
    convention = detect_changelog_convention(existing)
    if convention == 'none':
        initialize_changelog(root)
        print_success(f"Created {CHANGELOG_PATH}")
    elif convention == 'other' and _confirm("Found non-standard CHANGELOG. Migrate to Keep a Changelog format?", default=False):
        (root / f"{CHANGELOG_PATH}.bak").write_text(existing, encoding='utf-8')
        initialize_changelog(root)
        print_success(f"Created {CHANGELOG_PATH} (old file backed up to {CHANGELOG_PATH}.bak)")

    init_script_config(project_type, root)
    print_success(f"Created {AIC_CONFIG_PATH} config for {project_type} project")
    print(dim(f"Edit {AIC_CONFIG_PATH} to customize release and publish commands."))
    return 0
