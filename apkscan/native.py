"""Native library discovery from archive entry paths."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .logging import get_logger
from .models import NativeLibraryRecord

_LIB_ROOT = "lib/"
_SUFFIX = ".so"


@dataclass
class NativeScanResult:
    """Per-filename records plus the count of ``lib/`` paths that were skipped."""

    libraries: Dict[str, NativeLibraryRecord] = field(default_factory=dict)
    ignored_paths: int = 0

    @property
    def names(self) -> List[str]:
        return list(self.libraries)

    def architectures(self) -> List[str]:
        seen = set()
        for record in self.libraries.values():
            seen.update(record.architectures)
        return sorted(seen)

    def by_architecture(self) -> Dict[str, int]:
        """Number of distinct libraries shipped for each ABI."""
        counts: Counter[str] = Counter()
        for record in self.libraries.values():
            counts.update(record.architectures)
        return dict(sorted(counts.items()))


class NativeLibraryScanner:
    """Collects ``lib/<abi>/<name>.so`` entries.

    Shared objects at any other depth under ``lib/`` are not treated as
    native libraries; they are counted in ``ignored_paths`` instead.
    """

    def __init__(self) -> None:
        self.logger = get_logger("native")

    def scan(self, paths: Iterable[str]) -> NativeScanResult:
        libraries: Dict[str, NativeLibraryRecord] = {}
        ignored = 0
        for path in paths:
            if not path.startswith(_LIB_ROOT) or path.endswith("/") or not path.endswith(_SUFFIX):
                continue
            parts = path.split("/")
            if len(parts) != 3 or not all(parts):
                ignored += 1
                self.logger.debug("Ignoring native path at unexpected depth: %s", path)
                continue
            _, abi, filename = parts
            record = libraries.get(filename)
            if record is None:
                record = libraries[filename] = NativeLibraryRecord(name=filename)
            record.count += 1
            record.locations.append(path)
            record.architectures.add(abi)

        for record in libraries.values():
            record.locations.sort()

        result = NativeScanResult(
            libraries={name: libraries[name] for name in sorted(libraries)},
            ignored_paths=ignored,
        )
        self.logger.debug(
            "Found %d native librar(ies) across %s; ignored %d path(s)",
            len(result.libraries),
            ", ".join(result.architectures()) or "no ABI",
            ignored,
        )
        return result


__all__ = ["NativeLibraryScanner", "NativeScanResult"]
