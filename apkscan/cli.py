"""CLI entrypoints for apkscan commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .archive import ArchiveError, open_package
from .axml import DecodeError, decode_to_xml
from .config import ApkScanConfig, ConfigError, load_config
from .logging import configure_logging
from .orchestrator import Orchestrator
from .report import build_report, encodable, export_json
from .stores import CatalogError, build_catalog, load_catalog, write_catalog


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apkscan",
        description="Decode Android manifests and identify bundled third-party libraries.",
    )
    _add_verbosity_options(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .apkscan.yml or the directory holding it (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Identify libraries inside an APK or XAPK.",
    )
    _add_verbosity_options(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("package", type=Path, help="Path to the .apk or .xapk file.")
    analyze_parser.add_argument("--catalog", type=Path, default=None, help="Catalog bundle (JSON).")
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON report to this file or directory.",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the JSON report to stdout instead of a summary.",
    )
    analyze_parser.add_argument(
        "--include-xml",
        action="store_true",
        help="Embed the decoded manifest XML in the report.",
    )

    decode_parser = subparsers.add_parser(
        "decode",
        help="Print the decoded AndroidManifest.xml of an APK, XAPK or raw manifest file.",
    )
    _add_verbosity_options(decode_parser, suppress_default=True)
    decode_parser.add_argument("source", type=Path, help="Package or binary manifest path.")
    decode_parser.add_argument("--output", type=Path, default=None, help="Write XML to this file.")

    build_parser = subparsers.add_parser(
        "build-catalog",
        help="Merge a rule directory tree into one catalog bundle.",
    )
    _add_verbosity_options(build_parser, suppress_default=True)
    build_parser.add_argument("rules_dir", type=Path, help="Directory holding native-libs/, services-libs/, ...")
    build_parser.add_argument("--categories", type=Path, default=None, help="Category mapping JSON.")
    build_parser.add_argument("--output", type=Path, required=True, help="Destination bundle path.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service (requires uvicorn).",
    )
    _add_verbosity_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--catalog", type=Path, default=None, help="Catalog bundle (JSON).")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for apkscan commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(
        verbose=bool(args.verbose) or config.logging.verbose,
        quiet=bool(args.quiet),
        log_file=args.log_file or config.logging.file,
    )

    if args.command == "analyze":
        _run_analyze(parser, args, config)
    elif args.command == "decode":
        _run_decode(parser, args)
    elif args.command == "build-catalog":
        _run_build_catalog(parser, args)
    elif args.command == "serve":
        _run_serve(parser, args, config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace, config: ApkScanConfig) -> None:
    catalog_path = args.catalog or config.catalog.path
    if catalog_path is None:
        parser.exit(1, "No catalog given. Pass --catalog or set catalog.path in .apkscan.yml.\n")
    try:
        catalog = load_catalog(catalog_path)
        orchestrator = Orchestrator(catalog, component_kinds=config.catalog.kinds)
        result = orchestrator.run_package(args.package)
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except OSError as exc:
        parser.exit(1, f"apkscan analyze failed: {exc}\n")
    except DecodeError as exc:
        parser.exit(1, f"apkscan analyze failed: manifest could not be decoded: {exc}\n")
    except (ArchiveError, CatalogError) as exc:
        parser.exit(1, f"apkscan analyze failed: {exc}\n")

    include_xml = bool(args.include_xml) or config.report.include_xml
    destination = args.output or config.report.output_dir
    if destination is not None:
        written = export_json(
            result,
            destination,
            pretty=config.report.pretty,
            include_xml=include_xml,
            as_directory=args.output is None,
        )
        print(f"Report written to {_relativize(written)}", file=sys.stderr)

    if args.json:
        payload = build_report(result, include_xml=include_xml)
        text = json.dumps(payload, indent=2 if config.report.pretty else None, ensure_ascii=False)
        print(encodable(text))
        return

    info = result.manifest
    print(encodable(f"{info.package_name} {info.version_name} ({info.version_code})"))
    for library in result.libraries:
        arches = f" [{', '.join(sorted(library.architectures))}]" if library.architectures else ""
        print(f"  {library.label} x{library.count}{arches}")
    summary = result.match_summary
    print(
        f"{len(result.libraries)} librar(ies); "
        f"{summary.unidentified} unidentified, {summary.obfuscated} likely obfuscated"
    )


def _run_decode(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    source: Path = args.source
    try:
        if source.suffix.lower() in {".apk", ".xapk"}:
            data = open_package(source).manifest
        else:
            data = source.read_bytes()
        xml_text = decode_to_xml(data)
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except (ArchiveError, DecodeError, OSError) as exc:
        parser.exit(1, f"apkscan decode failed: {exc}\n")

    if args.output is not None:
        args.output.write_text(xml_text, encoding="utf-8", errors="backslashreplace")
        print(f"Manifest written to {_relativize(args.output)}", file=sys.stderr)
    else:
        sys.stdout.write(encodable(xml_text))


def _run_build_catalog(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        catalog, report = build_catalog(args.rules_dir, args.categories)
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except CatalogError as exc:
        parser.exit(1, f"apkscan build-catalog failed: {exc}\n")
    write_catalog(catalog, args.output)
    failed = sum(report.failed.values())
    print(
        f"Catalog {catalog.version}: {catalog.total_rules} rule(s), {failed} skipped, "
        f"written to {_relativize(args.output)}"
    )


def _run_serve(parser: argparse.ArgumentParser, args: argparse.Namespace, config: ApkScanConfig) -> None:
    catalog_path = args.catalog or config.catalog.path
    if catalog_path is None:
        parser.exit(1, "No catalog given. Pass --catalog or set catalog.path in .apkscan.yml.\n")
    from .service import run_service

    try:
        run_service(catalog_path, host=args.host, port=args.port)
    except (FileNotFoundError, CatalogError) as exc:
        parser.exit(1, f"{exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
