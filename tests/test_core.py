"""
Unit tests for core modules: diff parsing, DiffProcessor, semantics,
PromptBuilder, Config, clean_commit_message.

Run with:
    pytest tests/test_core.py -v
"""

import json

import pytest

from aicommit import COMMIT_TYPE_NAMES
from aicommit.cli.main import _processor_config
from aicommit.cli.utils import clean_commit_message
from aicommit.config import Config, ConfigManager
from aicommit.git.diff_parser import FileDiff, parse_unified_diff
from aicommit.git.diff_processor import (
    ClassifiedFiles,
    DiffProcessor,
    ProcessorConfig,
    format_file_list,
    format_stats,
)
from aicommit.git.semantic import SemanticInfo, extract_semantics, format_semantics
from aicommit.prompts.builder import PromptBuilder, PromptConfig


def make_block(path, added=0, removed=0, header_extra="", old_path=None, lines=None):
    """Build one 'diff --git' block with the given number of +/- lines."""
    old = old_path or path
    body = lines if lines is not None else (
        [f"+added {i}" for i in range(added)] + [f"-removed {i}" for i in range(removed)]
    )
    parts = [f"diff --git a/{old} b/{path}"]
    if header_extra:
        parts.append(header_extra)
    parts += [f"--- a/{old}", f"+++ b/{path}", "@@ -1,1 +1,1 @@", *body]
    return "\n".join(parts) + "\n"


NEW_FOO_TS = (
    "diff --git a/src/foo.ts b/src/foo.ts\n"
    "new file mode 100644\n"
    "index 0000000..e69de29\n"
    "--- /dev/null\n"
    "+++ b/src/foo.ts\n"
    "@@ -0,0 +1,3 @@\n"
    "+export function foo() {\n"
    "+  return 1;\n"
    "+}\n"
)

PURE_RENAME = (
    "diff --git a/lib/old_name.py b/lib/new_name.py\n"
    "similarity index 100%\n"
    "rename from lib/old_name.py\n"
    "rename to lib/new_name.py\n"
)


# ---------------------------------------------------------------------------
# Diff parser
# ---------------------------------------------------------------------------

class TestParseUnifiedDiff:

    def test_empty_input(self):
        parsed = parse_unified_diff("")
        assert parsed.is_empty
        assert parsed.total_additions == 0
        assert parsed.total_deletions == 0

    def test_single_added_file(self):
        parsed = parse_unified_diff(NEW_FOO_TS)
        assert parsed.total_files == 1
        record = parsed.files[0]
        assert record.path == "src/foo.ts"
        assert record.status == "added"
        assert record.additions == 3
        assert record.deletions == 0
        assert record.diff.startswith("diff --git a/src/foo.ts b/src/foo.ts")

    def test_deleted_file(self):
        block = make_block("old.txt", removed=2, header_extra="deleted file mode 100644")
        record = parse_unified_diff(block).files[0]
        assert record.status == "deleted"
        assert record.deletions == 2

    def test_pure_rename_yields_record_with_zero_counts(self):
        record = parse_unified_diff(PURE_RENAME).files[0]
        assert record.status == "renamed"
        assert record.path == "lib/new_name.py"
        assert record.old_path == "lib/old_name.py"
        assert record.total_changes == 0
        assert record.header == "lib/old_name.py -> lib/new_name.py"

    def test_rename_detected_from_differing_paths(self):
        record = parse_unified_diff(make_block("b.py", added=1, old_path="a.py")).files[0]
        assert record.status == "renamed"

    def test_new_file_marker_beats_rename(self):
        block = make_block("b.py", added=1, old_path="a.py", header_extra="new file mode 100644")
        record = parse_unified_diff(block).files[0]
        assert record.status == "added"
        assert record.old_path is None

    def test_modified_file(self):
        record = parse_unified_diff(make_block("app.py", added=2, removed=1)).files[0]
        assert record.status == "modified"
        assert (record.additions, record.deletions) == (2, 1)

    def test_file_headers_not_counted(self):
        record = parse_unified_diff(make_block("app.py", added=1, removed=1)).files[0]
        assert "--- a/app.py" in record.diff
        assert (record.additions, record.deletions) == (1, 1)

    def test_text_before_first_boundary_discarded(self):
        text = "warning: LF will be replaced by CRLF\n" + make_block("app.py", added=1)
        parsed = parse_unified_diff(text)
        assert [f.path for f in parsed.files] == ["app.py"]

    def test_malformed_header_skipped(self):
        text = "diff --git garbage\n+x\n" + make_block("app.py", added=1)
        parsed = parse_unified_diff(text)
        assert [f.path for f in parsed.files] == ["app.py"]

    def test_count_conservation(self):
        text = (
            make_block("a.py", added=3, removed=1)
            + make_block("b.py", added=5)
            + make_block("c.py", removed=4, header_extra="deleted file mode 100644")
        )
        parsed = parse_unified_diff(text)
        assert parsed.total_additions == sum(f.additions for f in parsed.files) == 8
        assert parsed.total_deletions == sum(f.deletions for f in parsed.files) == 5

    def test_order_preserved(self):
        text = "".join(make_block(p, added=1) for p in ("z.py", "a.py", "m.py"))
        assert [f.path for f in parse_unified_diff(text).files] == ["z.py", "a.py", "m.py"]

    def test_marker_text_in_content_lines_ignored(self):
        lines = [
            "+    if line.startswith('new file mode'):",
            "-    if 'deleted file mode' in block:",
            "+    # rename from the old layout",
        ]
        record = parse_unified_diff(make_block("diff_parser.py", lines=lines)).files[0]
        assert record.status == "modified"
        assert record.old_path is None

    def test_crlf_line_endings(self):
        text = make_block("app.py", added=2, removed=1).replace("\n", "\r\n")
        record = parse_unified_diff(text).files[0]
        assert record.path == "app.py"
        assert record.status == "modified"
        assert (record.additions, record.deletions) == (2, 1)

    def test_crlf_new_file(self):
        record = parse_unified_diff(NEW_FOO_TS.replace("\n", "\r\n")).files[0]
        assert (record.path, record.status) == ("src/foo.ts", "added")


class TestFileDiff:

    def test_total_changes(self):
        fd = FileDiff(path="src/app.py", status="modified", diff="", additions=10, deletions=3)
        assert fd.total_changes == 13


# ---------------------------------------------------------------------------
# DiffProcessor: classification
# ---------------------------------------------------------------------------

class TestDiffProcessorClassify:
    """DiffProcessor.get_tier() and classify()."""

    @pytest.fixture
    def processor(self):
        return DiffProcessor()

    @pytest.mark.parametrize("path", [
        "bun.lock",
        "package-lock.json",
        "frontend/yarn.lock",
        "pnpm-lock.yaml",
        "uv.lock",
        "assets/logo.png",
        "icons/app.svg",
        "fonts/Inter.woff2",
        "media/intro.mp4",
        ".DS_Store",
        "static/app.js.map",
        "tsconfig.tsbuildinfo",
        "dist/bundle.js",
        "build/output.js",
        ".expo/settings.json",
        "node_modules/pkg/index.js",
    ])
    def test_excluded_files(self, processor, path):
        assert processor.get_tier(path) == "excluded"

    @pytest.mark.parametrize("path", [
        "src/cli/main.py",
        "lib/utils.ts",
        "README.md",
        "poetry.lock",
        "Cargo.lock",
        "",
    ])
    def test_included_files(self, processor, path):
        assert processor.get_tier(path) == "included"

    def test_patterns_are_case_sensitive(self, processor):
        assert processor.get_tier("assets/LOGO.PNG") == "included"

    def test_summary_patterns_empty_by_default(self, processor):
        assert processor.config.summary_patterns == []

    def test_exclusion_beats_summary(self):
        processor = DiffProcessor(ProcessorConfig(summary_patterns=[r"\.lock$", r"\.md$"]))
        assert processor.get_tier("yarn.lock") == "excluded"
        assert processor.get_tier("docs/guide.md") == "summarized"

    def test_partition_is_complete_and_ordered(self):
        processor = DiffProcessor(ProcessorConfig(summary_patterns=[r"\.md$"]))
        text = "".join(make_block(p, added=1) for p in (
            "src/a.py", "yarn.lock", "README.md", "src/b.py", "dist/x.js",
        ))
        files = processor.parse(text).files
        classified = processor.classify(files)

        assert [f.path for f in classified.included] == ["src/a.py", "src/b.py"]
        assert [f.path for f in classified.summarized] == ["README.md"]
        assert [f.path for f in classified.excluded] == ["yarn.lock", "dist/x.js"]
        assert classified.total_files == len(files)

    def test_all_excluded_has_no_relevant_changes(self, processor):
        text = make_block("package-lock.json", added=100)
        processed = processor.process(text)
        assert not processed.classified.has_relevant
        assert processed.compressed_diff == ""


# ---------------------------------------------------------------------------
# DiffProcessor: compression
# ---------------------------------------------------------------------------

class TestDiffCompression:

    @pytest.fixture
    def processor(self):
        return DiffProcessor()

    @staticmethod
    def _file(path, n_lines, status="modified"):
        diff = "\n".join(f"line {i}" for i in range(n_lines))
        return FileDiff(path=path, status=status, diff=diff, additions=n_lines)

    def test_empty_list(self, processor):
        assert processor.compress([]) == ""

    def test_small_file_unchanged(self, processor):
        f = self._file("app.py", 10)
        assert processor.compress([f]) == f"--- app.py\n{f.diff}"

    def test_oversized_file_head_and_tail(self, processor):
        f = self._file("big.py", 200)
        out = processor.compress([f]).split("\n")

        assert out[0] == "--- big.py"
        body = out[1:]
        assert body[:35] == [f"line {i}" for i in range(35)]
        assert body[35] == "... [150 lines omitted] ..."
        assert body[36:] == [f"line {i}" for i in range(185, 200)]

    def test_deleted_file_placeholder(self, processor):
        f = self._file("gone.py", 500, status="deleted")
        assert processor.compress([f]) == "--- gone.py (deleted)"

    def test_deleted_files_consume_no_budget(self, processor):
        files = [self._file(f"gone{i}.py", 500, status="deleted") for i in range(40)]
        files.append(self._file("kept.py", 10))
        out = processor.compress(files)
        assert "(omitted)" not in out
        assert out.endswith(files[-1].diff)

    def test_blocks_joined_by_blank_line(self, processor):
        out = processor.compress([self._file("a.py", 1), self._file("b.py", 1)])
        assert out == "--- a.py\nline 0\n\n--- b.py\nline 0"

    def test_rename_uses_header(self, processor):
        f = FileDiff(path="new.py", status="renamed", diff="x", old_path="old.py")
        assert processor.compress([f]).startswith("--- old.py -> new.py\n")

    def test_global_budget_respected(self, processor):
        files = [self._file(f"f{i}.py", 200) for i in range(40)]
        out, truncated = processor.compress_with_status(files)

        content = [
            line for line in out.split("\n")
            if line and not line.startswith("--- ") and not line.startswith("... [")
        ]
        assert len(content) <= 1500
        assert out.count("(omitted)") == 10
        assert truncated

    def test_budget_boundary_gets_partial_file(self):
        processor = DiffProcessor(ProcessorConfig(max_total_lines=60))
        files = [self._file("a.py", 50), self._file("b.py", 50), self._file("c.py", 50)]
        out = processor.compress(files)
        assert "--- c.py (omitted)" in out
        b_block = out.split("\n\n")[1].split("\n")
        # 10 lines left: 7 head + marker + 3 tail
        assert len(b_block) == 1 + 10 + 1

    def test_truncation_is_idempotent(self, processor):
        diff = "\n".join(f"line {i}" for i in range(200))
        once, kept = processor.truncate_diff(diff, 50)
        assert kept == 50
        again, _ = processor.truncate_diff(once, len(once.split("\n")))
        assert again == once

    def test_fitting_diff_returned_byte_identical(self, processor):
        diff = "a\nb\n\nc"
        assert processor.truncate_diff(diff, 50) == (diff, 4)


# ---------------------------------------------------------------------------
# Semantics
# ---------------------------------------------------------------------------

class TestSemantics:

    def test_new_file_names(self):
        files = parse_unified_diff(NEW_FOO_TS).files
        info = extract_semantics(files)
        assert info.functions == ("foo",)
        assert info.exports == ("foo",)
        assert info.classes == ()

    def test_all_families(self):
        lines = [
            "+export class UserService {",
            "+interface Options {}",
            "+type Handler = () => void",
            "+const load = async (id) => {",
            "+let parse = input => input.trim()",
            "+async function save(user) {",
        ]
        files = parse_unified_diff(make_block("svc.ts", lines=lines)).files
        info = extract_semantics(files)
        assert info.classes == ("UserService",)
        assert info.types == ("Options", "Handler")
        assert info.functions == ("save", "load", "parse")
        assert info.exports == ("UserService",)

    def test_dedup_keeps_first_occurrence(self):
        lines = ["+function b() {}", "+function a() {}", "+function b() {}"]
        files = parse_unified_diff(make_block("x.js", lines=lines)).files
        assert extract_semantics(files).functions == ("b", "a")

    def test_removed_lines_ignored(self):
        lines = ["-function gone() {}", "+const kept = () => 1"]
        files = parse_unified_diff(make_block("x.js", lines=lines)).files
        assert extract_semantics(files).functions == ("kept",)

    def test_deleted_files_skipped(self):
        f = FileDiff(path="x.js", status="deleted", diff="+function ghost() {}")
        assert extract_semantics([f]).is_empty

    def test_no_matches(self):
        files = parse_unified_diff(make_block("notes.txt", added=3)).files
        assert extract_semantics(files) == SemanticInfo()

    def test_format_caps_and_order(self):
        info = SemanticInfo(
            functions=tuple(f"f{i}" for i in range(12)),
            classes=tuple(f"C{i}" for i in range(7)),
        )
        text = format_semantics(info)
        lines = text.split("\n")
        assert lines[0] == "Functions: " + ", ".join(f"f{i}" for i in range(10))
        assert lines[1] == "Classes: " + ", ".join(f"C{i}" for i in range(5))
        assert len(lines) == 2

    def test_format_empty(self):
        assert format_semantics(SemanticInfo()) == ""


# ---------------------------------------------------------------------------
# Stats and file list
# ---------------------------------------------------------------------------

class TestFormatting:

    def test_stats_counts_included_only(self):
        processor = DiffProcessor()
        text = (
            make_block("a.py", added=3, removed=1)
            + make_block("b.py", added=2, header_extra="new file mode 100644")
            + make_block("yarn.lock", added=50)
        )
        processed = processor.process(text)
        assert processed.stats == "Files: 1 modified, 1 added | Lines: +55 / -1"

    def test_stats_single_added_file(self):
        processed = DiffProcessor().process(NEW_FOO_TS)
        assert processed.stats == "Files: 1 added | Lines: +3 / -0"

    def test_stats_empty(self):
        assert format_stats(ClassifiedFiles(), 0, 0) == "Files:  | Lines: +0 / -0"

    def test_file_list(self):
        def fd(path):
            return FileDiff(path=path, status="modified", diff="")

        classified = ClassifiedFiles(
            included=(fd("a.py"), fd("b.py")),
            summarized=(fd("README.md"),),
            excluded=(fd("yarn.lock"), fd("dist/x.js")),
        )
        assert format_file_list(classified) == (
            "a.py, b.py\n(summarized: README.md)\n(excluded: 2 files)"
        )


# ---------------------------------------------------------------------------
# PromptBuilder
# ---------------------------------------------------------------------------

class TestPromptBuilder:

    @pytest.fixture
    def builder(self):
        return PromptBuilder()

    @pytest.fixture
    def diff(self):
        return DiffProcessor().process(NEW_FOO_TS + make_block("yarn.lock", added=5))

    def test_starts_with_preamble(self, builder, diff):
        assert builder.build(diff).startswith("Generate a conventional commit message.")

    def test_contains_diff_content(self, builder, diff):
        result = builder.build(diff)
        assert "--- src/foo.ts\ndiff --git a/src/foo.ts b/src/foo.ts" in result
        assert "+export function foo() {" in result
        assert "(excluded: 1 files)" in result

    def test_section_order(self, builder, diff):
        config = PromptConfig(hint="part of the API rewrite", selected_type="feat",
                              recent_commits=["fix: handle empty input"])
        result = builder.build(diff, config)
        headings = [
            "## User Selection", "## Recent Project Activity", "## User Note",
            "## Stats", "## Code Changes", "## Files", "## Diff",
            "## Commit Types", "## Rules", "IMPORTANT:",
        ]
        positions = [result.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_optional_sections_omitted(self, builder, diff):
        result = builder.build(diff, PromptConfig())
        assert "## User Selection" not in result
        assert "## Recent Project Activity" not in result
        assert "## User Note" not in result

    def test_auto_selection_ignored(self, builder, diff):
        result = builder.build(diff, PromptConfig(selected_type="auto"))
        assert "## User Selection" not in result

    def test_selection_mentions_type(self, builder, diff):
        result = builder.build(diff, PromptConfig(selected_type="fix"))
        assert 'most likely a "fix"' in result

    def test_blank_hint_omitted(self, builder, diff):
        assert "## User Note" not in builder.build(diff, PromptConfig(hint="   "))

    def test_code_changes_omitted_without_semantics(self, builder):
        diff = DiffProcessor().process(make_block("notes.txt", added=2))
        assert "## Code Changes" not in builder.build(diff)

    def test_all_commit_types_listed(self, builder, diff):
        result = builder.build(diff)
        types_section = result.split("## Commit Types\n")[1].split("\n\n")[0]
        assert [line.split(":")[0][2:] for line in types_section.split("\n")] == COMMIT_TYPE_NAMES

    def test_simple_style_no_type_prefix(self, builder, diff):
        result = builder.build(diff, PromptConfig(style="simple"))
        assert "no type prefix" in result

    def test_multi_option_instructions(self, builder, diff):
        result = builder.build(diff, PromptConfig(num_options=3))
        assert "[Option 1]" in result
        assert "[Option 3]" in result

    def test_subject_only_by_default(self, builder, diff):
        assert "Subject line only, no body" in builder.build(diff)

    def test_max_subject_length(self, builder, diff):
        assert "Max 50 characters" in builder.build(diff, PromptConfig(max_subject_length=50))

    def test_truncated_diff_note(self, builder):
        processor = DiffProcessor()
        diff = processor.process(make_block("big.py", added=300))
        assert diff.truncated
        assert "truncated due to size" in builder.build(diff)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.provider == "auto"
        assert config.style == "conventional"
        assert config.include_body is False
        assert config.max_subject_length == 72
        assert config.recent_commits == 3

    def test_to_dict_excludes_none(self):
        d = Config().to_dict()
        assert "model" not in d
        assert "provider" in d

    def test_from_dict_ignores_unknown_keys(self):
        config = Config.from_dict({"provider": "claude", "unknown_key": "value"})
        assert config.provider == "claude"
        assert not hasattr(config, "unknown_key")

    @pytest.mark.parametrize("provider", ["auto", "claude", "claude-cli", "cloudflare", "ollama"])
    def test_valid_providers(self, provider):
        assert Config(provider=provider).validate() == []

    def test_validate_invalid_provider(self):
        config = Config(provider="gpt4")
        warnings = config.validate()
        assert len(warnings) == 1
        assert config.provider == "auto"

    def test_validate_invalid_style(self):
        config = Config(style="fancy")
        assert len(config.validate()) == 1
        assert config.style == "conventional"

    def test_validate_negative_recent_commits(self):
        config = Config(recent_commits=-1)
        assert any("recent_commits" in w for w in config.validate())
        assert config.recent_commits == 3

    def test_pattern_lists_drop_bad_regexes(self):
        config = Config(exclude_patterns=["^fixtures/", "(unclosed"], summary_patterns="CHANGELOG.md")
        warnings = config.validate()
        assert len(warnings) == 2
        assert config.exclude_patterns == ["^fixtures/"]
        assert config.summary_patterns == []

    def test_invalid_max_diff_lines(self):
        config = Config(max_diff_lines=0)
        assert any("max_diff_lines" in w for w in config.validate())
        assert config.max_diff_lines == 1500

    def test_processor_config_extends_exclusions(self):
        config = Config(exclude_patterns=["^fixtures/"], summary_patterns=[r"\.md$"], max_diff_lines=300)
        processor_config = _processor_config(config)

        assert processor_config.excluded_patterns == [*ProcessorConfig().excluded_patterns, "^fixtures/"]
        assert processor_config.summary_patterns == [r"\.md$"]
        assert processor_config.max_total_lines == 300

    def test_from_dict_triggers_validation(self, capsys):
        Config.from_dict({"provider": "invalid"})
        assert "Config warning" in capsys.readouterr().err


class TestConfigManager:

    def test_load_returns_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        config = ConfigManager().load()
        assert config.provider == "auto"

    def test_load_reads_local_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".aicrc").write_text(json.dumps({"provider": "cloudflare", "style": "simple"}))

        config = ConfigManager().load()
        assert config.provider == "cloudflare"
        assert config.style == "simple"

    def test_save_and_load_roundtrip(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path)

        ConfigManager().save(Config(provider="ollama", style="detailed"), global_config=True)
        loaded = ConfigManager().load()
        assert loaded.provider == "ollama"
        assert loaded.style == "detailed"

    @pytest.mark.parametrize("content", ["not valid json {{{", "[1, 2, 3]"])
    def test_malformed_file_returns_defaults(self, tmp_path, monkeypatch, capsys, content):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".aicrc").write_text(content)

        config = ConfigManager().load()
        assert config.provider == "auto"
        assert "Could not load" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# clean_commit_message
# ---------------------------------------------------------------------------

class TestCleanCommitMessageEdgeCases:

    def test_strips_llm_preamble(self):
        raw = "Sure! Here's a commit message:\n\nfeat(cli): add verbose flag"
        assert clean_commit_message(raw) == "feat(cli): add verbose flag"

    def test_strips_fences_with_language(self):
        raw = "```text\nfix(api): handle timeout\n```"
        assert clean_commit_message(raw) == "fix(api): handle timeout"

    @pytest.mark.parametrize("raw", ['"deps: bump requests"', "'deps: bump requests'"])
    def test_strips_quotes(self, raw):
        assert clean_commit_message(raw) == "deps: bump requests"

    def test_preserves_body_bullets(self):
        raw = "feat(auth): add login\n\n- add endpoint\n- validate creds"
        assert clean_commit_message(raw) == raw

    def test_strips_trailing_code_block(self):
        raw = "fix(cli): escape args\n\n- fix quoting\n\n```python\ncode here\n```"
        assert clean_commit_message(raw) == "fix(cli): escape args\n\n- fix quoting"

    def test_handles_type_with_bang(self):
        assert "feat!" in clean_commit_message("feat!: remove deprecated endpoints")

    @pytest.mark.parametrize("label", ["deps", "security", "i18n"])
    def test_extended_labels(self, label):
        raw = f"Here you go:\n{label}: update things"
        assert clean_commit_message(raw) == f"{label}: update things"
