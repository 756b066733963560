from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from hecate_revert.app import RevertSummary
from hecate_revert.config import HecateConfig, RevertConfig
from hecate_revert.domain.caching import DEFAULT_CONCURRENCY, VersionCheck
from hecate_revert.domain.errors import DirtyRevertUnsupported, RemoteFetchError
from hecate_revert.domain.history import VersionMode
from hecate_revert.domain.reversion import ReversionFailure
from hecate_revert.ui import cli as cli_module

if TYPE_CHECKING:
    from pathlib import Path

    from hecate_revert.domain.ports import TextSink


def _capture(
    monkeypatch: pytest.MonkeyPatch,
    summary: RevertSummary | None = None,
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_revert(*, sink: TextSink, **kwargs: object) -> RevertSummary:
        captured.update(kwargs)
        sink.write(json.dumps({"id": 1}) + "\n")
        return summary or RevertSummary(deltas=1, cached=1, written=1)

    monkeypatch.setattr(cli_module, "revert_deltas", fake_revert)
    return captured


def test_cli_revert_defaults(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured = _capture(monkeypatch)

    cli_module.main(["revert", "--start", "5"])

    assert captured["start"] == 5
    assert captured["end"] == 5
    config = _revert(captured["revert_config"])
    assert config.concurrency == DEFAULT_CONCURRENCY
    assert config.version_mode is VersionMode.LENIENT
    assert config.version_check is VersionCheck.WARN
    assert not config.fail_fast
    assert _hecate(captured["hecate_config"]).url == "http://localhost:8000/"
    assert capsys.readouterr().out == '{"id": 1}\n'


def test_cli_revert_with_flags(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured = _capture(monkeypatch)
    output = tmp_path / "inverse.geojsonld"

    cli_module.main(
        [
            "revert",
            "--start",
            "5",
            "--end",
            "7",
            "--output",
            str(output),
            "--url",
            "https://hecate.example.com:8443",
            "--concurrency",
            "4",
            "--version-check",
            "ignore",
            "--strict-versions",
            "--fail-fast",
        ]
    )

    config = _revert(captured["revert_config"])
    assert captured["end"] == 7
    assert config.concurrency == 4
    assert config.version_check is VersionCheck.IGNORE
    assert config.version_mode is VersionMode.STRICT
    assert config.fail_fast
    assert _hecate(captured["hecate_config"]).url == "https://hecate.example.com:8443/"
    assert output.read_text(encoding="utf-8") == '{"id": 1}\n'


def test_cli_revert_uses_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)
    monkeypatch.setenv("HECATE_URL", "http://hecate.internal:9000")
    monkeypatch.setenv("HECATE_REVERT_CONCURRENCY", "3")

    cli_module.main(["revert", "--start", "1", "--end", "2", "--output", "-"])

    assert _revert(captured["revert_config"]).concurrency == 3
    assert _hecate(captured["hecate_config"]).url == "http://hecate.internal:9000/"


def test_cli_rejects_inverted_range(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["revert", "--start", "7", "--end", "5"])

    assert excinfo.value.code == 2
    assert captured == {}


@pytest.mark.parametrize(
    "argv",
    [
        ["revert"],
        ["revert", "--start", "abc"],
        ["revert", "--start", "-1"],
        ["revert", "--start", "1", "--concurrency", "0"],
        ["revert", "--start", "1", "--version-check", "sometimes"],
        ["revert", "--start", "1", "--url", "localhost:8000"],
        ["revert", "--start", "1", "--url", "ftp://hecate.example"],
        ["unknown"],
    ],
)
def test_cli_rejects_invalid_arguments(monkeypatch: pytest.MonkeyPatch, argv: list[str]) -> None:
    _capture(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2


def test_cli_exits_nonzero_when_features_are_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    failure = ReversionFailure(
        entity_id=11,
        error=DirtyRevertUnsupported("Feature: 11 has been subsequently edited", entity_id=11),
    )
    _capture(monkeypatch, RevertSummary(deltas=1, cached=2, written=1, failures=[failure]))

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["revert", "--start", "5", "--output", "-"])

    assert excinfo.value.code == 1


def test_cli_exits_nonzero_on_fatal_error(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def fake_revert(**_: object) -> RevertSummary:
        raise RuntimeError("hecate unreachable")

    monkeypatch.setattr(cli_module, "revert_deltas", fake_revert)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["revert", "--start", "5", "--output", "-"])

    assert excinfo.value.code == 1
    assert "Fatal error during revert" in caplog.text


def test_cli_rejects_half_configured_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(monkeypatch)
    monkeypatch.setenv("HECATE_USERNAME", "ingalls")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["revert", "--start", "5", "--output", "-"])

    assert excinfo.value.code == 1


def _revert(value: object) -> RevertConfig:
    assert isinstance(value, RevertConfig)
    return value


def _hecate(value: object) -> HecateConfig:
    assert isinstance(value, HecateConfig)
    return value


def test_cli_keeps_previous_output_when_revert_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    output = tmp_path / "inverse.geojsonld"
    output.write_text('{"id": 7}\n', encoding="utf-8")

    def fake_revert(*, sink: TextSink, **_: object) -> RevertSummary:
        sink.write('{"id": 1}\n')
        raise RemoteFetchError("Delta: 6 could not be fetched", delta_id=6)

    monkeypatch.setattr(cli_module, "revert_deltas", fake_revert)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["revert", "--start", "5", "--output", str(output)])

    assert excinfo.value.code == 1
    assert output.read_text(encoding="utf-8") == '{"id": 7}\n'
    assert list(tmp_path.iterdir()) == [output]


def test_cli_replaces_output_after_successful_revert(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _capture(monkeypatch)
    output = tmp_path / "inverse.geojsonld"
    output.write_text("stale\n", encoding="utf-8")

    cli_module.main(["revert", "--start", "5", "--output", str(output)])

    assert output.read_text(encoding="utf-8") == '{"id": 1}\n'
    assert list(tmp_path.iterdir()) == [output]
