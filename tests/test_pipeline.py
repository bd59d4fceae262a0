from pathlib import Path

from kt_style_lint.config import build_registry
from kt_style_lint.models import LintConfig, Severity, Violation
from kt_style_lint.pipeline import (
    EXIT_OK,
    EXIT_VIOLATIONS,
    CancellationToken,
    discover_files,
    exit_code,
    lint_file,
    lint_paths,
)
from kt_style_lint.registry import RuleRegistry
from kt_style_lint.rules import builtin_rules


def _project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "build" / "generated").mkdir(parents=True)
    (root / "src" / "Main.kt").write_text("class foo\n", encoding="utf-8")
    (root / "src" / "build.gradle.kts").write_text("val version = 1\n", encoding="utf-8")
    (root / "src" / "notes.txt").write_text("class ignored\n", encoding="utf-8")
    (root / "build" / "generated" / "Gen.kt").write_text("class bad\n", encoding="utf-8")
    return root


def test_directory_walk_respects_extensions_and_excludes(tmp_path, registry):
    root = _project(tmp_path)

    batch = lint_paths([root], registry, LintConfig(), jobs=2)

    assert [Path(item.path).name for item in batch.files] == ["Main.kt", "build.gradle.kts"]
    assert batch.files_checked == 2
    assert not batch.cancelled
    assert [(item.rule_id, item.line, item.column) for item in batch.violations] == [("type-naming", 1, 7)]


def test_discovery_skips_large_files_and_keeps_explicit_paths(tmp_path):
    root = _project(tmp_path)
    explicit = [root / "src" / "notes.txt", root / "src" / "Main.kt"]

    found = discover_files(
        [root, *explicit],
        include_exts={".kt"},
        exclude_dirs={"build"},
        max_file_size_bytes=100,
    )
    assert [path.name for path in found] == ["Main.kt", "notes.txt"]

    assert discover_files([root], include_exts={".kt"}, exclude_dirs=set(), max_file_size_bytes=9) == []
    found = discover_files([root], include_exts={".kt"}, exclude_dirs=set(), max_file_size_bytes=100)
    assert sorted(path.name for path in found) == ["Gen.kt", "Main.kt"]


def test_missing_file_becomes_io_error(tmp_path, registry):
    missing = tmp_path / "Nope.kt"

    batch = lint_paths([missing], registry)

    [violation] = batch.violations
    assert violation.rule_id == "io-error"
    assert violation.path == str(missing)
    assert (violation.line, violation.column) == (1, 1)
    assert violation.severity is Severity.ERROR


def test_undecodable_file_becomes_io_error(tmp_path, registry):
    binary = tmp_path / "Binary.kt"
    binary.write_bytes(b"\xff\xfe\x00class")

    result = lint_file(binary, registry)

    assert [item.rule_id for item in result.violations] == ["io-error"]
    assert not result.skipped


def test_cancelled_token_skips_every_file(tmp_path, registry):
    root = _project(tmp_path)
    token = CancellationToken()
    token.cancel()

    batch = lint_paths([root], registry, cancel_token=token)

    assert batch.cancelled
    assert batch.files_checked == 0
    assert batch.files_skipped == 2
    assert batch.violations == []
    assert batch.to_dict() == {
        "files_checked": 0,
        "files_skipped": 2,
        "violations_count": 0,
        "cancelled": True,
    }


def test_lint_paths_freezes_registry(tmp_path):
    registry = RuleRegistry(builtin_rules())
    sample = tmp_path / "Ok.kt"
    sample.write_text("class Ok\n", encoding="utf-8")

    batch = lint_paths([sample], registry)

    assert registry.frozen
    assert batch.violations == []


def test_unbalanced_file_exit_code(tmp_path, registry):
    broken = tmp_path / "Broken.kt"
    broken.write_text("fun main() {\n    println(1)\n}\n}\n", encoding="utf-8")

    batch = lint_paths([broken], registry)

    assert [item.rule_id for item in batch.violations] == ["parse-error"]
    assert exit_code(batch.violations) == EXIT_VIOLATIONS


def test_exit_code_depends_on_error_severity():
    warning = Violation("function-naming", "A.kt", 1, 5, "bad name", Severity.WARNING)
    error = Violation("type-naming", "A.kt", 1, 7, "bad name", Severity.ERROR)

    assert exit_code([]) == EXIT_OK
    assert exit_code([warning]) == EXIT_OK
    assert exit_code([warning, error]) == EXIT_VIOLATIONS


def test_results_follow_discovery_order(tmp_path):
    registry = build_registry(LintConfig())
    for index in range(12):
        (tmp_path / f"File{index:02d}.kt").write_text(f"class file{index}\n", encoding="utf-8")

    batch = lint_paths([tmp_path], registry, jobs=4)

    assert [Path(item.path).name for item in batch.files] == [f"File{index:02d}.kt" for index in range(12)]
    assert [item.path for item in batch.violations] == [item.path for item in batch.files]
