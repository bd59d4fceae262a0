from __future__ import annotations

import csv
import io
import json
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from kt_style_lint.models import Violation


STYLES = ("plain", "json", "csv")

CSV_FIELDS = ["path", "line", "column", "severity", "rule_id", "message"]


def format_violations(violations: Iterable[Violation], style: str = "plain") -> str:
    items = list(violations)
    if style == "plain":
        return "".join(_plain_line(item) + "\n" for item in items)
    if style == "json":
        return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=True) + "\n"
    if style == "csv":
        return _csv_text(items)
    raise ValueError(f"Unsupported report style: {style!r} (expected one of {', '.join(STYLES)})")


def parse_json_report(text: str) -> list[Violation]:
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError("JSON report must be a list of violations")
    return [Violation.from_dict(item) for item in raw]


def summarize(violations: Iterable[Violation]) -> dict:
    items = list(violations)
    by_severity = Counter(item.severity.value for item in items)
    by_rule = Counter(item.rule_id for item in items)
    return {
        "violations_total": len(items),
        "files_with_violations": len({item.path for item in items}),
        "by_severity": dict(sorted(by_severity.items())),
        "by_rule": dict(sorted(by_rule.items(), key=lambda pair: (-pair[1], pair[0]))),
    }


def write_report(path: str | Path, text: str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)
    return out


def _plain_line(item: Violation) -> str:
    return f"{item.path}:{item.line}:{item.column}: [{item.severity.value}] {item.rule_id} {item.message}"


def _csv_text(items: list[Violation]) -> str:
    handle = io.StringIO()
    writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for item in items:
        row = item.to_dict()
        writer.writerow({key: row[key] for key in CSV_FIELDS})
    return handle.getvalue()
