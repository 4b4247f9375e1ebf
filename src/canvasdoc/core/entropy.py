"""Ordering information that decomposition would otherwise lose.

The document keeps data sources in an ordered list, so entropy is not
consulted in memory. It exists for the source tree, where entries are split
into one file per name, and for the archive entry order of a packed file.

Persisted form (`Entropy/Entropy.json`):
    {
      "ArchiveOrder": ["Header.json", ...],
      "DataSourceOrder": {"<Name>": [0, 3], ...},
      "ControlPaths": {"Screen1": "Controls/4.json", ...}
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from canvasdoc.core.model import DataSourceEntry


@dataclass
class Entropy:
    archive_order: list[str] = field(default_factory=list)
    data_source_order: dict[str, list[int]] = field(default_factory=dict)
    # top parent name -> archive path it was read from
    control_paths: dict[str, str] = field(default_factory=dict)

    def record_data_sources(self, entries: Iterable[DataSourceEntry]) -> None:
        order: dict[str, list[int]] = {}
        for i, ds in enumerate(entries):
            order.setdefault(ds.name, []).append(i)
        self.data_source_order = order

    def restore_data_source_order(self, groups: dict[str, list[DataSourceEntry]]) -> list[DataSourceEntry]:
        """Interleave per-name groups back into their recorded positions.

        Entries without a recorded position follow, grouped by sorted name.
        """
        placed: list[tuple[int, DataSourceEntry]] = []
        unplaced: list[DataSourceEntry] = []
        for name in sorted(groups):
            positions = self.data_source_order.get(name, [])
            for i, ds in enumerate(groups[name]):
                if i < len(positions):
                    placed.append((positions[i], ds))
                else:
                    unplaced.append(ds)
        placed.sort(key=lambda item: item[0])
        return [ds for _, ds in placed] + unplaced

    def to_json(self) -> dict[str, Any]:
        return {
            "ArchiveOrder": list(self.archive_order),
            "DataSourceOrder": {k: list(v) for k, v in sorted(self.data_source_order.items())},
            "ControlPaths": dict(sorted(self.control_paths.items())),
        }

    @classmethod
    def from_json(cls, obj: Any) -> "Entropy":
        if obj is None:
            return cls()
        if not isinstance(obj, dict):
            raise ValueError("Entropy.json: expected JSON object")
        archive = obj.get("ArchiveOrder") or []
        if not isinstance(archive, list) or not all(isinstance(x, str) for x in archive):
            raise ValueError("Entropy.json: ArchiveOrder must be list[str]")
        ds_order = obj.get("DataSourceOrder") or {}
        if not isinstance(ds_order, dict):
            raise ValueError("Entropy.json: DataSourceOrder must be an object")
        out: dict[str, list[int]] = {}
        for name, positions in ds_order.items():
            if not isinstance(positions, list) or not all(
                isinstance(p, int) and not isinstance(p, bool) for p in positions
            ):
                raise ValueError(f"Entropy.json: DataSourceOrder[{name!r}] must be list[int]")
            out[str(name)] = list(positions)
        control_paths = obj.get("ControlPaths") or {}
        if not isinstance(control_paths, dict) or not all(isinstance(v, str) for v in control_paths.values()):
            raise ValueError("Entropy.json: ControlPaths must map names to paths")
        return cls(
            archive_order=list(archive),
            data_source_order=out,
            control_paths={str(k): v for k, v in control_paths.items()},
        )
