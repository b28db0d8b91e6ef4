"""Core data models shared across apkscan components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

COMPONENT_KINDS = ("activities", "services", "providers", "receivers")
CATALOG_KINDS = ("native",) + COMPONENT_KINDS + ("static", "actions")

# Label prefixed to a component location, e.g. "Service: com.x.PushService".
COMPONENT_LABELS = {
    "activities": "Activity",
    "services": "Service",
    "providers": "Provider",
    "receivers": "Receiver",
}


@dataclass
class ManifestInfo:
    """Package identity read from the manifest root and ``uses-sdk``."""

    package_name: str = "Unknown"
    version_name: str = "Unknown"
    version_code: int = 0
    min_sdk_version: Optional[int] = None
    target_sdk_version: Optional[int] = None


@dataclass
class ComponentLists:
    """Declared component class names, in document order, duplicates kept."""

    activities: List[str] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    providers: List[str] = field(default_factory=list)
    receivers: List[str] = field(default_factory=list)

    def by_kind(self) -> Dict[str, List[str]]:
        return {kind: getattr(self, kind) for kind in COMPONENT_KINDS}

    def total(self) -> int:
        return sum(len(names) for names in self.by_kind().values())


@dataclass
class NativeLibraryRecord:
    """Occurrences of one ``.so`` filename across ABI directories."""

    name: str
    count: int = 0
    locations: List[str] = field(default_factory=list)
    architectures: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class CatalogEntry:
    """Known library signature, keyed in the catalog by a normalized name."""

    id: str
    uuid: str
    name: str
    label: str
    category: str = "other"
    category_label: str = ""
    category_icon: str = ""
    developer: str = "Unknown"
    description: str = ""
    source_link: str = ""
    type: str = "native"

    @property
    def identity(self) -> str:
        return self.uuid or self.id


@dataclass
class MatchedLibrary:
    """One logical library, accumulated across every signal that resolved to it."""

    id: str
    uuid: str
    name: str
    label: str
    category: str
    developer: str
    description: str
    source_link: str
    type: str
    count: int = 0
    locations: List[str] = field(default_factory=list)
    architectures: Set[str] = field(default_factory=set)
    has_metadata: bool = True
    category_label: str = ""
    category_icon: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "name": self.name,
            "label": self.label,
            "category": self.category,
            "categoryLabel": self.category_label,
            "categoryIcon": self.category_icon,
            "developer": self.developer,
            "description": self.description,
            "sourceLink": self.source_link,
            "type": self.type,
            "count": self.count,
            "locations": list(self.locations),
            "architectures": sorted(self.architectures),
            "hasMetadata": self.has_metadata,
        }


@dataclass
class AnalysisProgress:
    """Advisory stage notification emitted while an analysis runs."""

    stage: str
    message: str
    progress: int
