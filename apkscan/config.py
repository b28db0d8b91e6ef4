"""Configuration loading for apkscan (.apkscan.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import CATALOG_KINDS, COMPONENT_KINDS

CONFIG_FILENAME = ".apkscan.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CatalogConfig:
    """Where the signature catalog lives and which component kinds to match."""

    path: Optional[Path] = None
    kinds: List[str] = field(default_factory=lambda: list(COMPONENT_KINDS))


@dataclass
class ReportConfig:
    """JSON report defaults."""

    pretty: bool = True
    include_xml: bool = False
    output_dir: Optional[Path] = None


@dataclass
class LoggingConfig:
    verbose: bool = False
    file: Optional[Path] = None


@dataclass
class ApkScanConfig:
    """Represents the settings defined in .apkscan.yml."""

    root: Path
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path) -> ApkScanConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ApkScanConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    catalog = CatalogConfig()
    catalog_data = _as_dict(data.get("catalog"))
    if catalog_data:
        catalog.path = _as_path(catalog_data.get("path"), root)
        kinds = _as_str_list(catalog_data.get("kinds"))
        if kinds:
            unknown = sorted(set(kinds) - set(CATALOG_KINDS))
            if unknown:
                raise ConfigError(f"Unknown catalog kinds: {', '.join(unknown)}")
            catalog.kinds = [kind for kind in kinds if kind in COMPONENT_KINDS]

    report = ReportConfig()
    report_data = _as_dict(data.get("report"))
    if report_data:
        pretty = _as_bool(report_data.get("pretty"))
        if pretty is not None:
            report.pretty = pretty
        report.include_xml = _as_bool(report_data.get("include_xml")) or False
        report.output_dir = _as_path(report_data.get("output_dir"), root)

    logging_config = LoggingConfig()
    logging_data = _as_dict(data.get("logging"))
    if logging_data:
        logging_config.verbose = _as_bool(logging_data.get("verbose")) or False
        logging_config.file = _as_path(logging_data.get("file"), root)

    return ApkScanConfig(root=root, catalog=catalog, report=report, logging=logging_config)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_path(value: Any, root: Path) -> Optional[Path]:
    if not isinstance(value, str) or not value.strip():
        return None
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ApkScanConfig",
    "CONFIG_FILENAME",
    "CatalogConfig",
    "ConfigError",
    "LoggingConfig",
    "ReportConfig",
    "load_config",
]
