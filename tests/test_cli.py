import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

from kaleido import kaleido_cli

FAKE_SOURCE = "extern sin(a); def f(x) x + sin(x) * 2; f(1)"
SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def test_run_kaleido_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.run_kaleido(source=FAKE_SOURCE, is_string=True)
    out = capsys.readouterr().out.splitlines()
    assert out == ["extern sin(a)", "def f(x) (x + (sin(x) * 2))", "f(1)"]


def test_run_kaleido_file_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    file_path = tmp_path / "input.kal"
    file_path.write_text("# comment\n1 - 2 - 3\n")
    result = kaleido_cli.run_kaleido(source=str(file_path))
    assert result == "((1 - 2) - 3)"
    assert "((1 - 2) - 3)" in capsys.readouterr().out


def test_run_kaleido_rejects_other_extensions(tmp_path: Path) -> None:
    file_path = tmp_path / "input.txt"
    file_path.write_text("x")
    with pytest.raises(ValueError, match=r"Only \.kal files"):
        kaleido_cli.run_kaleido(source=str(file_path))


def test_run_kaleido_json(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.run_kaleido(source="foo(1, 2 + 3)", is_string=True, mode="json")
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 1
    body = data[0]["body"]
    assert data[0]["proto"]["name"] == "__anon_expr"
    assert body["kind"] == "call"
    assert body["callee"] == "foo"
    assert [a["kind"] for a in body["args"]] == ["number", "binary"]


def test_run_kaleido_tokens(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.run_kaleido(source="def f(x)", is_string=True, mode="tokens")
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "1:1\tDEF\tdef"
    assert lines[1] == "1:5\tIDENT\tf"
    assert lines[2] == "1:6\t(\t("
    assert len(lines) == 5


def test_run_kaleido_precedence(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.run_kaleido(
        source="1 + 2 * 3", is_string=True, precedence={"+": 50, "*": 10}
    )
    assert capsys.readouterr().out.strip() == "((1 + 2) * 3)"


def test_run_kaleido_output_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_path = tmp_path / "out.txt"
    kaleido_cli.run_kaleido(source="a * b", is_string=True, out=str(output_path))
    assert output_path.read_text().strip() == "(a * b)"
    assert capsys.readouterr().out == ""


def test_run_kaleido_syntax_error() -> None:
    with pytest.raises(SyntaxError):
        kaleido_cli.run_kaleido(source="foo(1,", is_string=True)


def test_render_unknown_mode() -> None:
    with pytest.raises(ValueError, match="Unknown output mode"):
        kaleido_cli.render("x", mode="xml")


def test_main_string_source(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.main(["-s", "x < y + 1"])
    assert capsys.readouterr().out.strip() == "(x < (y + 1))"


def test_main_json_flag(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.main(["-s", "extern f(a b)", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert data == [
        {"kind": "prototype", "name": "f", "params": ["a", "b"], "line": 1, "col": 8}
    ]


def test_main_prec_flag(capsys: pytest.CaptureFixture[str]) -> None:
    kaleido_cli.main(["-s", "a / b + c", "-P", "/=40"])
    assert capsys.readouterr().out.strip() == "((a / b) + c)"


def test_main_bad_prec_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        kaleido_cli.main(["-s", "x", "-P", "+=nope"])
    assert exc.value.code == 2
    assert "is not an integer" in capsys.readouterr().err


def test_main_json_and_tokens_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        kaleido_cli.main(["-s", "x", "--json", "--tokens"])


def test_main_syntax_error_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        kaleido_cli.main(["-s", "(1 + 2"])
    assert exc.value.code == 1
    assert "[error] >>> expected ')'" in capsys.readouterr().err


def test_main_no_args_starts_repl(monkeypatch: pytest.MonkeyPatch) -> None:
    called: dict[str, Any] = {}

    def fake_repl(**kwargs: Any) -> None:
        called.update(kwargs)
        called["ran"] = True

    monkeypatch.setattr("kaleido.kaleido_repl.start_repl", fake_repl)
    kaleido_cli.main([])
    assert called == {"ran": True}


def test_main_repl_flag_passes_options(monkeypatch: pytest.MonkeyPatch) -> None:
    called: dict[str, Any] = {}
    monkeypatch.setattr(
        "kaleido.kaleido_repl.start_repl", lambda **kwargs: called.update(kwargs)
    )
    kaleido_cli.main(["--repl", "--verbose", "-P", "+=5"])
    assert called["verbose"] is True
    assert called["precedence"]["+"] == 5


def test_cli_subprocess_runs(tmp_path: Path) -> None:
    file_path = tmp_path / "prog.kal"
    file_path.write_text("def sq(x) x * x\nsq(4)\n")
    env = dict(os.environ, PYTHONPATH=str(SRC_DIR))
    result = subprocess.run(
        [sys.executable, "-m", "kaleido.kaleido_cli", str(file_path)],
        capture_output=True,
        text=True,
        env=env,
        check=False,
    )
    assert result.returncode == 0
    assert result.stdout.splitlines() == ["def sq(x) (x * x)", "sq(4)"]


def test_cli_subprocess_reports_errors() -> None:
    env = dict(os.environ, PYTHONPATH=str(SRC_DIR))
    result = subprocess.run(
        [sys.executable, "-m", "kaleido.kaleido_cli", "-s", "foo(1 2)"],
        capture_output=True,
        text=True,
        env=env,
        check=False,
    )
    assert result.returncode == 1
    assert "expected ')' or ',' in argument list" in result.stderr


def test_main_deep_nesting_exits_with_error(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc:
        kaleido_cli.main(["-s", "(" * 3000 + "1" + ")" * 3000])
    assert exc.value.code == 1
    assert "[error] >>> expression nested too deeply" in capsys.readouterr().err


@pytest.mark.parametrize("flags", [[], ["--json"]])  # type: ignore[misc]
def test_main_too_deep_to_render_exits_with_error(
    flags: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc:
        kaleido_cli.main(["-s", "x" + " + x" * 5000, *flags])
    assert exc.value.code == 1
    assert "nested too deeply to render" in capsys.readouterr().err


def test_main_number_out_of_range_exits_with_error(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc:
        kaleido_cli.main(["-s", "1" * 400])
    assert exc.value.code == 1
    assert "Number literal out of range" in capsys.readouterr().err
