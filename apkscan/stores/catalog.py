"""Library signature catalog: loading bundles and building them from rule trees."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..logging import get_logger
from ..models import CATALOG_KINDS, CatalogEntry

# Rule tree directory -> catalog kind.
RULE_DIRECTORIES = {
    "native-libs": "native",
    "activities-libs": "activities",
    "services-libs": "services",
    "providers-libs": "providers",
    "receivers-libs": "receivers",
    "static-libs": "static",
    "actions-libs": "actions",
}

_PREFERRED_LOCALES = ("zh-Hans", "en")

logger = get_logger("stores.catalog")


class CatalogError(RuntimeError):
    """Raised when a catalog bundle cannot be read or has the wrong shape."""


@dataclass
class Catalog:
    """Versioned signature tables, one insertion-ordered mapping per kind."""

    version: str
    generated_at: str = ""
    categories: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    tables: Dict[str, Dict[str, CatalogEntry]] = field(default_factory=dict)

    def table(self, kind: str) -> Dict[str, CatalogEntry]:
        return self.tables.get(kind, {})

    @property
    def total_rules(self) -> int:
        return sum(len(table) for table in self.tables.values())

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Catalog":
        if not isinstance(payload, Mapping):
            raise CatalogError("Catalog bundle must be a JSON object")
        version = payload.get("version")
        if not isinstance(version, str) or not version:
            raise CatalogError("Catalog bundle is missing a version string")
        rules = payload.get("rules")
        if not isinstance(rules, Mapping):
            raise CatalogError("Catalog bundle is missing the 'rules' mapping")

        tables: Dict[str, Dict[str, CatalogEntry]] = {}
        for kind in CATALOG_KINDS:
            raw_table = rules.get(kind) or {}
            if not isinstance(raw_table, Mapping):
                raise CatalogError(f"Catalog table '{kind}' must be a mapping")
            table: Dict[str, CatalogEntry] = {}
            for key, raw in raw_table.items():
                entry = _entry_from_dict(str(key), raw, kind)
                if entry is not None:
                    table[str(key)] = entry
            tables[kind] = table

        categories = payload.get("categories")
        return cls(
            version=version,
            generated_at=str(payload.get("generatedAt") or ""),
            categories=dict(categories) if isinstance(categories, Mapping) else {},
            tables=tables,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "totalRules": self.total_rules,
            "categories": self.categories,
            "rules": {
                kind: {key: _entry_to_dict(entry) for key, entry in self.table(kind).items()}
                for kind in CATALOG_KINDS
            },
        }


def _entry_from_dict(key: str, raw: Any, kind: str) -> Optional[CatalogEntry]:
    if not isinstance(raw, Mapping):
        return None
    return CatalogEntry(
        id=str(raw.get("id") or key),
        uuid=str(raw.get("uuid") or ""),
        name=str(raw.get("name") or key),
        label=str(raw.get("label") or key),
        category=str(raw.get("category") or "other"),
        category_label=str(raw.get("categoryLabel") or ""),
        category_icon=str(raw.get("categoryIcon") or ""),
        developer=str(raw.get("developer") or "Unknown"),
        description=str(raw.get("description") or ""),
        source_link=str(raw.get("sourceLink") or ""),
        type=str(raw.get("type") or kind),
    )


def _entry_to_dict(entry: CatalogEntry) -> Dict[str, str]:
    return {
        "id": entry.id,
        "uuid": entry.uuid,
        "name": entry.name,
        "label": entry.label,
        "developer": entry.developer,
        "description": entry.description,
        "sourceLink": entry.source_link,
        "category": entry.category,
        "categoryLabel": entry.category_label,
        "categoryIcon": entry.category_icon,
        "type": entry.type,
    }


def load_catalog(path: Path) -> Catalog:
    """Read a ``rules-bundle.json`` style catalog from disk."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Failed to read catalog {path}: {exc}") from exc
    catalog = Catalog.from_dict(payload)
    logger.debug("Loaded catalog %s with %d rule(s) from %s", catalog.version, catalog.total_rules, path)
    return catalog


# ----------------------------------------------------------------------
# Bundle building from a rule directory tree


@dataclass
class BuildReport:
    """Per-kind counters from :func:`build_catalog`."""

    loaded: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, int] = field(default_factory=dict)
    missing_directories: List[str] = field(default_factory=list)


def _iter_rule_files(directory: Path) -> Iterator[Path]:
    yield from sorted(path for path in directory.rglob("*.json") if path.is_file())


def _rule_key(path: Path, directory: Path) -> str:
    relative = path.relative_to(directory).as_posix()
    return relative[: -len(".json")].replace("/", ".")


def _localized(data: Any) -> Optional[Mapping[str, Any]]:
    if not isinstance(data, list) or not data:
        return None
    for locale in _PREFERRED_LOCALES:
        for item in data:
            if isinstance(item, Mapping) and item.get("locale") == locale:
                inner = item.get("data")
                return inner if isinstance(inner, Mapping) else None
    return None


def _category_for(
    uuid: str, sdks: Mapping[str, Any], categories: Mapping[str, Any]
) -> Tuple[str, Mapping[str, Any]]:
    info = sdks.get(uuid)
    key = "other"
    if isinstance(info, Mapping) and info.get("category"):
        key = str(info["category"])
    details = categories.get(key) or categories.get("other") or {}
    return key, details if isinstance(details, Mapping) else {}


def build_catalog(
    rules_dir: Path,
    categories_file: Path | None = None,
    *,
    now: datetime | None = None,
) -> Tuple[Catalog, BuildReport]:
    """Merge per-library rule files into one :class:`Catalog`.

    Unreadable or empty rule files are counted and skipped; a missing
    ``rules_dir`` is an error.
    """
    if not rules_dir.is_dir():
        raise FileNotFoundError(f"Rule directory not found: {rules_dir}")

    categories: Mapping[str, Any] = {}
    sdks: Mapping[str, Any] = {}
    if categories_file is not None:
        try:
            category_data = json.loads(categories_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"Failed to read categories {categories_file}: {exc}") from exc
        if not isinstance(category_data, Mapping):
            raise CatalogError(f"{categories_file.name} must contain a JSON object")
        categories = category_data.get("categories") or {}
        sdks = category_data.get("sdks") or {}

    stamp = now or datetime.now()
    catalog = Catalog(
        version=stamp.strftime("%Y-%m-%d-%H%M"),
        generated_at=stamp.isoformat(),
        categories=dict(categories),
        tables={kind: {} for kind in CATALOG_KINDS},
    )
    report = BuildReport()

    for directory_name, kind in RULE_DIRECTORIES.items():
        directory = rules_dir / directory_name
        if not directory.is_dir():
            report.missing_directories.append(directory_name)
            logger.warning("Rule directory missing: %s", directory)
            continue
        loaded = failed = 0
        for path in _iter_rule_files(directory):
            key = _rule_key(path, directory)
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable rule %s: %s", path.name, exc)
                failed += 1
                continue
            localized = _localized(raw.get("data")) if isinstance(raw, Mapping) else None
            if localized is None:
                logger.debug("Skipping rule without usable data: %s", key)
                failed += 1
                continue
            uuid = str(raw.get("uuid") or "")
            category, details = _category_for(uuid, sdks, categories)
            catalog.tables[kind][key] = CatalogEntry(
                id=key,
                uuid=uuid,
                name=key,
                label=str(localized.get("label") or "Unknown"),
                category=category,
                category_label=str(details.get("label") or ""),
                category_icon=str(details.get("icon") or ""),
                developer=str(localized.get("dev_team") or "Unknown"),
                description=str(localized.get("description") or ""),
                source_link=str(localized.get("source_link") or ""),
                type=kind,
            )
            loaded += 1
        report.loaded[kind] = loaded
        report.failed[kind] = failed
        logger.info("%s: %d rule(s) loaded, %d skipped", directory_name, loaded, failed)

    return catalog, report


def write_catalog(catalog: Catalog, path: Path, *, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = catalog.to_dict()
    text = json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")


__all__ = [
    "BuildReport",
    "Catalog",
    "CatalogError",
    "RULE_DIRECTORIES",
    "build_catalog",
    "load_catalog",
    "write_catalog",
]
