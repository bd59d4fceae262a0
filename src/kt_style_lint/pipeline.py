from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from kt_style_lint.checker import check
from kt_style_lint.models import BatchResult, FileResult, LintConfig, Severity, Violation
from kt_style_lint.registry import RuleRegistry
from kt_style_lint.rules.system import IO_ERROR
from kt_style_lint.scanner import scan

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 3


class CancellationToken:
    """Run-level cancellation, checked before each file starts."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def lint_text(text: str, registry: RuleRegistry, path: str = "<memory>") -> list[Violation]:
    return check(registry, scan(text, path))


def lint_file(path: str | Path, registry: RuleRegistry) -> FileResult:
    display = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", display, exc)
        rule = registry.get(IO_ERROR)
        return FileResult(
            path=display,
            violations=(
                Violation(
                    rule_id=rule.id,
                    path=display,
                    line=1,
                    column=1,
                    message=f"Cannot read file: {exc}",
                    severity=rule.severity,
                ),
            ),
        )

    violations = lint_text(text, registry, display)
    logger.debug("%s: %d violation(s)", display, len(violations))
    return FileResult(path=display, violations=tuple(violations))


def lint_paths(
    paths: Iterable[str | Path],
    registry: RuleRegistry,
    config: LintConfig | None = None,
    *,
    jobs: int | None = None,
    cancel_token: CancellationToken | None = None,
) -> BatchResult:
    settings = config or LintConfig()
    if not registry.frozen:
        registry.freeze()

    files = discover_files(
        paths,
        include_exts=set(settings.include_exts),
        exclude_dirs=set(settings.exclude_dirs),
        max_file_size_bytes=settings.max_file_size_bytes,
    )
    token = cancel_token or CancellationToken()

    def run_one(path: Path) -> FileResult:
        if token.cancelled:
            return FileResult(path=str(path), skipped=True)
        return lint_file(path, registry)

    workers = max(1, jobs or settings.jobs)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = tuple(pool.map(run_one, files))

    batch = BatchResult(files=results, cancelled=any(item.skipped for item in results))
    logger.info(
        "Checked %d file(s), skipped %d, found %d violation(s)",
        batch.files_checked,
        batch.files_skipped,
        len(batch.violations),
    )
    return batch


def exit_code(violations: Iterable[Violation]) -> int:
    if any(item.severity is Severity.ERROR for item in violations):
        return EXIT_VIOLATIONS
    return EXIT_OK


def discover_files(
    paths: Iterable[str | Path],
    *,
    include_exts: set[str],
    exclude_dirs: set[str],
    max_file_size_bytes: int,
) -> list[Path]:
    found: list[Path] = []
    seen: set[Path] = set()

    for raw in paths:
        root = Path(raw)
        # Explicit files are always checked; missing ones surface as io-error.
        candidates = _iter_candidate_files(root, include_exts, exclude_dirs) if root.is_dir() else iter([root])
        for path in candidates:
            if path in seen:
                continue
            seen.add(path)
            try:
                size = path.stat().st_size
            except OSError:
                size = 0
            if size > max_file_size_bytes:
                logger.info("Skipping %s: larger than %d bytes", path, max_file_size_bytes)
                continue
            found.append(path)

    return found


def _iter_candidate_files(root: Path, include_exts: set[str], exclude_dirs: set[str]) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part in exclude_dirs for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in include_exts:
            yield path
