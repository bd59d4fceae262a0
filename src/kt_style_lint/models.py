from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kt_style_lint.syntax import SyntaxView


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @classmethod
    def parse(cls, value: object) -> Severity:
        text = str(value).strip().lower()
        for item in cls:
            if item.value == text:
                return item
        raise ValueError(f"Unknown severity: {value!r}")


@dataclass(frozen=True)
class Hit:
    line: int
    column: int
    message: str


@dataclass(frozen=True)
class Violation:
    rule_id: str
    path: str
    line: int
    column: int
    message: str
    severity: Severity = Severity.WARNING

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["severity"] = self.severity.value
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Violation:
        return cls(
            rule_id=str(payload["rule_id"]),
            path=str(payload["path"]),
            line=int(payload["line"]),
            column=int(payload["column"]),
            message=str(payload["message"]),
            severity=Severity.parse(payload.get("severity", Severity.WARNING.value)),
        )


Matcher = Callable[["SyntaxView"], Iterable[Hit]]


@dataclass(frozen=True)
class Rule:
    id: str
    description: str
    severity: Severity
    matcher: Matcher = field(compare=False)

    def apply(self, view: SyntaxView) -> list[Violation]:
        return [
            Violation(
                rule_id=self.id,
                path=view.path,
                line=hit.line,
                column=hit.column,
                message=hit.message,
                severity=self.severity,
            )
            for hit in self.matcher(view)
        ]


@dataclass(frozen=True)
class RuleSetting:
    rule_id: str
    enabled: bool | None = None
    severity: Severity | None = None


@dataclass(frozen=True)
class LintConfig:
    rules: tuple[RuleSetting, ...] = ()
    include_exts: tuple[str, ...] = (".kt", ".kts")
    exclude_dirs: tuple[str, ...] = (".git", ".gradle", ".idea", "build", "node_modules", "out")
    max_file_size_bytes: int = 2_000_000
    jobs: int = 4


@dataclass(frozen=True)
class FileResult:
    path: str
    violations: tuple[Violation, ...] = ()
    skipped: bool = False


@dataclass(frozen=True)
class BatchResult:
    files: tuple[FileResult, ...]
    cancelled: bool = False

    @property
    def violations(self) -> list[Violation]:
        collected: list[Violation] = []
        for item in self.files:
            collected.extend(item.violations)
        return collected

    @property
    def files_checked(self) -> int:
        return sum(1 for item in self.files if not item.skipped)

    @property
    def files_skipped(self) -> int:
        return sum(1 for item in self.files if item.skipped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_checked": self.files_checked,
            "files_skipped": self.files_skipped,
            "violations_count": len(self.violations),
            "cancelled": self.cancelled,
        }
