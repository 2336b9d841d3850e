from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .schemas import validate_dataset_payload

IPD = "Ipd"
PULSE_WIDTH = "PulseWidth"

# Chemistries that need no covariates besides SNR.
EXEMPT_CHEMISTRIES = frozenset({"P6-C4", "S/P1-C1/beta"})
REQUIRED_BASE_FEATURES = (IPD, PULSE_WIDTH)


@dataclass(frozen=True)
class ReadGroup:
    id: str
    sequencing_chemistry: str
    base_features: frozenset[str] = frozenset()

    def has_base_feature(self, feature: str) -> bool:
        return feature in self.base_features


@dataclass(frozen=True)
class BamFile:
    path: str
    read_groups: tuple[ReadGroup, ...] = ()


@dataclass(frozen=True)
class DataSet:
    bam_files: tuple[BamFile, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DataSet":
        validate_dataset_payload(payload)
        bams = []
        for bam in payload["bam_files"]:
            groups = tuple(
                ReadGroup(
                    id=str(rg["id"]),
                    sequencing_chemistry=str(rg["sequencing_chemistry"]),
                    base_features=frozenset(str(x) for x in rg.get("base_features", [])),
                )
                for rg in bam["read_groups"]
            )
            bams.append(BamFile(path=str(bam["path"]), read_groups=groups))
        return cls(bam_files=tuple(bams))


def load_dataset(path: str | Path) -> DataSet:
    p = Path(path)
    with p.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Dataset file must be a JSON object: {p}")
    return DataSet.from_dict(payload)


def missing_base_features(dataset: DataSet) -> list[tuple[str, str, tuple[str, ...]]]:
    """(bam path, read group id, missing features) for each failing read group."""
    rows: list[tuple[str, str, tuple[str, ...]]] = []
    for bam in dataset.bam_files:
        for rg in bam.read_groups:
            if rg.sequencing_chemistry in EXEMPT_CHEMISTRIES:
                continue
            missing = tuple(f for f in REQUIRED_BASE_FEATURES if not rg.has_base_feature(f))
            if missing:
                rows.append((bam.path, rg.id, missing))
    return rows


def valid_base_features(dataset: DataSet) -> bool:
    """True when every read group is exempt or carries IPD and PulseWidth."""
    for bam in dataset.bam_files:
        for rg in bam.read_groups:
            if rg.sequencing_chemistry in EXEMPT_CHEMISTRIES:
                continue
            if not rg.has_base_feature(IPD) or not rg.has_base_feature(PULSE_WIDTH):
                return False
    return True
