import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from kt_style_lint import cli
from kt_style_lint.cli import main
from kt_style_lint.pipeline import CancellationToken
from kt_style_lint.reporting import parse_json_report


ROOT = Path(__file__).resolve().parents[1]


def _write_sources(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "Bad.kt").write_text("class foo(id: Int, name: String)\n", encoding="utf-8")
    (src / "Warn.kt").write_text("fun Run() {}\n", encoding="utf-8")
    return src


def test_check_json_report_exits_one_on_errors(tmp_path, capsys):
    src = _write_sources(tmp_path)

    code = main(["check", str(src), "--format", "json"])

    violations = parse_json_report(capsys.readouterr().out)
    assert code == 1
    assert [(item.rule_id, Path(item.path).name) for item in violations] == [
        ("type-naming", "Bad.kt"),
        ("function-naming", "Warn.kt"),
    ]


def test_check_warnings_only_exits_zero(tmp_path, capsys):
    src = _write_sources(tmp_path)

    code = main(["check", str(src / "Warn.kt")])

    out = capsys.readouterr().out
    assert code == 0
    assert out.endswith("[warning] function-naming Function name 'Run' should be lowerCamelCase\n")


def test_check_writes_output_file(tmp_path, capsys):
    src = _write_sources(tmp_path)
    report = tmp_path / "out" / "report.csv"

    main(["check", str(src), "--format", "csv", "--output", str(report)])

    assert capsys.readouterr().out == ""
    assert report.read_text(encoding="utf-8").splitlines()[0] == "path,line,column,severity,rule_id,message"


def test_rules_lists_effective_rules(tmp_path, capsys):
    config = tmp_path / "kt-style.json"
    config.write_text(json.dumps({"rules": {"lambda-it-parameter": {"enabled": False}}}), encoding="utf-8")

    code = main(["rules", "--config", str(config), "--format", "json"])

    ids = [item["id"] for item in json.loads(capsys.readouterr().out)]
    assert code == 0
    assert "lambda-it-parameter" not in ids
    assert ids[:3] == ["parse-error", "rule-failed", "io-error"]


def test_unknown_rule_in_config_is_a_usage_error(tmp_path, capsys):
    config = tmp_path / "kt-style.json"
    config.write_text(json.dumps({"rules": {"no-tabs": {}}}), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["check", str(tmp_path), "--config", str(config)])

    assert excinfo.value.code == 2
    assert "no-tabs" in capsys.readouterr().err


class _CancelAfterFirstFile(CancellationToken):
    def __init__(self):
        super().__init__()
        self._checks = 0

    @property
    def cancelled(self) -> bool:
        self._checks += 1
        return self._checks > 1


def test_cancelled_run_exits_three(tmp_path, capsys, monkeypatch):
    src = _write_sources(tmp_path)

    def _pre_cancelled():
        token = CancellationToken()
        token.cancel()
        return token

    monkeypatch.setattr(cli, "CancellationToken", _pre_cancelled)

    code = main(["check", str(src), "--timeout", "5"])

    assert code == 3
    assert capsys.readouterr().out == ""


def test_cancellation_wins_over_error_violations(tmp_path, capsys, monkeypatch):
    src = _write_sources(tmp_path)
    monkeypatch.setattr(cli, "CancellationToken", _CancelAfterFirstFile)

    code = main(["check", str(src), "--timeout", "5", "--jobs", "1"])

    out = capsys.readouterr().out
    assert code == 3
    assert "[error] type-naming" in out
    assert "Warn.kt" not in out


@pytest.mark.parametrize("size", ["0", "-1"])
def test_non_positive_max_file_size_is_a_usage_error(tmp_path, capsys, size):
    src = _write_sources(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["check", str(src), "--max-file-size-bytes", size])

    assert excinfo.value.code == 2
    assert "max_file_size_bytes" in capsys.readouterr().err


def test_max_file_size_flag_overrides_config(tmp_path, capsys):
    src = _write_sources(tmp_path)

    code = main(["check", str(src), "--max-file-size-bytes", "20"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Bad.kt" not in out
    assert "function-naming" in out


def test_module_entry_point(tmp_path):
    src = _write_sources(tmp_path)
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")

    result = subprocess.run(
        [sys.executable, "-m", "kt_style_lint.cli", "check", str(src / "Bad.kt"), "-v"],
        cwd=ROOT,
        text=True,
        capture_output=True,
        env=env,
        check=False,
    )

    assert result.returncode == 1
    assert "type-naming Type name 'foo' should be UpperCamelCase" in result.stdout
    assert "Summary:" in result.stderr
