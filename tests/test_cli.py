"""CLI parser behaviour and command runs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from apkscan.cli import _build_parser, main
from tests._fixtures.axml_builder import labelled_manifest
from tests._fixtures.packages import catalog_payload, write_apk


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("apkscan")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "rules-bundle.json"
    path.write_text(json.dumps(catalog_payload()), encoding="utf-8")
    return path


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "decode", "AndroidManifest.xml"])
    assert args.verbose is True
    assert args.command == "decode"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "app.apk", "--verbose"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.package == Path("app.apk")


def test_cli_accepts_analyze_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["analyze", "app.xapk", "--catalog", "bundle.json", "--json", "--include-xml"]
    )
    assert args.catalog == Path("bundle.json")
    assert args.json is True
    assert args.include_xml is True


def test_cli_build_catalog_requires_output() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["build-catalog", "rules"])


def test_analyze_prints_json_report(
    tmp_path: Path,
    sample_apk: Path,
    catalog_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    main(["--config", str(tmp_path), "analyze", str(sample_apk), "--catalog", str(catalog_file), "--json"])

    report = json.loads(capsys.readouterr().out)
    assert report["basic"]["packageName"] == "com.example.app"
    assert report["libraries"][0]["label"] == "ACRA"


def test_analyze_summary_and_export(
    tmp_path: Path,
    sample_apk: Path,
    catalog_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    output = tmp_path / "report.json"

    main(
        [
            "--config",
            str(tmp_path),
            "analyze",
            str(sample_apk),
            "--catalog",
            str(catalog_file),
            "--output",
            str(output),
        ]
    )

    out = capsys.readouterr().out
    assert out.startswith("com.example.app 1.4.2 (42)")
    assert "ACRA x4 [arm64-v8a, armeabi-v7a]" in out
    assert "1 unidentified, 1 likely obfuscated" in out
    assert json.loads(output.read_text(encoding="utf-8"))["catalogVersion"] == "2024-01-01-0000"


def test_analyze_without_catalog_exits(tmp_path: Path, sample_apk: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "analyze", str(sample_apk)])
    assert excinfo.value.code == 1


def test_analyze_bad_package_exits(tmp_path: Path, catalog_file: Path) -> None:
    broken = write_apk(tmp_path / "broken.apk", None)

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "analyze", str(broken), "--catalog", str(catalog_file)])
    assert excinfo.value.code == 1


def test_decode_raw_manifest(
    tmp_path: Path, manifest_bytes: bytes, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "AndroidManifest.xml"
    source.write_bytes(manifest_bytes)

    main(["--config", str(tmp_path), "decode", str(source)])

    out = capsys.readouterr().out
    assert '<manifest xmlns:android="http://schemas.android.com/apk/res/android"' in out
    assert 'android:name="org.acra.sender.SenderService"' in out


def test_decode_package_to_file(tmp_path: Path, sample_apk: Path) -> None:
    output = tmp_path / "decoded.xml"

    main(["--config", str(tmp_path), "decode", str(sample_apk), "--output", str(output)])

    assert output.read_text(encoding="utf-8").startswith('<?xml version="1.0"')


def test_decode_garbage_exits(tmp_path: Path) -> None:
    source = tmp_path / "garbage.bin"
    source.write_bytes(b"\x03\x00\x08\x00")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "decode", str(source)])
    assert excinfo.value.code == 1


def test_build_catalog_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rules = tmp_path / "rules" / "native-libs"
    rules.mkdir(parents=True)
    (rules / "libz.so.json").write_text(
        json.dumps({"uuid": "zlib", "data": [{"locale": "en", "data": {"label": "zlib"}}]}),
        encoding="utf-8",
    )
    output = tmp_path / "bundle.json"

    main(["--config", str(tmp_path), "build-catalog", str(tmp_path / "rules"), "--output", str(output)])

    bundle = json.loads(output.read_text(encoding="utf-8"))
    assert bundle["rules"]["native"]["libz.so"]["label"] == "zlib"
    assert "1 rule(s)" in capsys.readouterr().out


def test_analyze_writes_into_configured_output_dir(
    tmp_path: Path, sample_apk: Path, catalog_file: Path
) -> None:
    (tmp_path / ".apkscan.yml").write_text("report:\n  output_dir: reports\n", encoding="utf-8")

    main(["--config", str(tmp_path), "analyze", str(sample_apk), "--catalog", str(catalog_file)])
    main(["--config", str(tmp_path), "analyze", str(sample_apk), "--catalog", str(catalog_file)])

    reports = tmp_path / "reports"
    assert reports.is_dir()
    written = list(reports.glob("com.example.app_*.json"))
    assert written
    assert json.loads(written[0].read_text(encoding="utf-8"))["basic"]["versionCode"] == 42


@pytest.mark.parametrize("command", ["analyze", "decode"])
def test_directory_in_place_of_package_exits(tmp_path: Path, catalog_file: Path, command: str) -> None:
    package = tmp_path / "folder.apk"
    package.mkdir()
    argv = ["--config", str(tmp_path), command, str(package)]
    if command == "analyze":
        argv += ["--catalog", str(catalog_file)]

    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 1


def test_decode_supplementary_plane_label(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "AndroidManifest.xml"
    source.write_bytes(labelled_manifest("Party \U0001F600"))
    output = tmp_path / "decoded.xml"

    main(["--config", str(tmp_path), "decode", str(source), "--output", str(output)])
    main(["--config", str(tmp_path), "decode", str(source)])

    escaped = 'android:label="Party \\ud83d\\ude00"'
    assert escaped in output.read_text(encoding="utf-8")
    assert escaped in capsys.readouterr().out


def test_analyze_json_with_xml_and_supplementary_plane_label(
    tmp_path: Path, catalog_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    package = write_apk(tmp_path / "party.apk", labelled_manifest("Party \U0001F600"))

    main(
        [
            "--config",
            str(tmp_path),
            "analyze",
            str(package),
            "--catalog",
            str(catalog_file),
            "--json",
            "--include-xml",
        ]
    )

    report = json.loads(capsys.readouterr().out)
    assert 'android:label="Party \U0001F600"' in report["manifestXml"]
