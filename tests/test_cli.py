from __future__ import annotations

import json
from pathlib import Path
from urllib.error import URLError

from color_king.cli import _build_parser, _handle_run


def _offline(monkeypatch) -> None:
    def fake_urlopen(req, timeout=0):
        raise URLError("offline")

    monkeypatch.setattr("color_king.providers.http_utils.urlopen", fake_urlopen)
    monkeypatch.delenv("COLORKING_PROVIDER", raising=False)


def test_run_writes_print_job_with_mock_data(tmp_path: Path, monkeypatch, capsys) -> None:
    _offline(monkeypatch)
    args = _build_parser().parse_args(
        [
            "run",
            "--prompt",
            "a cat in a crown",
            "--drawing",
            "2",
            "--outline",
            "3",
            "--copies",
            "2",
            "--color",
            "blue",
            "--state-dir",
            str(tmp_path / "state"),
            "--out",
            str(tmp_path / "out"),
        ]
    )

    assert _handle_run(args) == 0

    pdfs = list((tmp_path / "out").glob("coloring-page-*.pdf"))
    assert len(pdfs) == 1
    output = capsys.readouterr().out
    assert "mock" in output
    assert "Print job written to" in output
    events = [
        json.loads(line)
        for line in (tmp_path / "state" / "events.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    assert events[-1]["type"] == "print_job_written"


def test_run_reports_invalid_settings(tmp_path: Path, monkeypatch, capsys) -> None:
    _offline(monkeypatch)
    args = _build_parser().parse_args(
        ["run", "--prompt", "a dog", "--copies", "12", "--state-dir", str(tmp_path)]
    )

    assert _handle_run(args) == 1
    assert "validation" in capsys.readouterr().out
    assert not (tmp_path / "prints").exists()


def test_run_with_credential_surfaces_provider_failure(tmp_path: Path, monkeypatch, capsys) -> None:
    _offline(monkeypatch)
    args = _build_parser().parse_args(
        ["run", "--prompt", "a dog", "--credential", "r8-key", "--provider", "replicate", "--state-dir", str(tmp_path)]
    )

    assert _handle_run(args) == 1
    output = capsys.readouterr().out
    assert "network_help" in output
    stored = json.loads((tmp_path / "local_storage.json").read_text(encoding="utf-8"))
    assert stored["provider_enabled"] == "true"
