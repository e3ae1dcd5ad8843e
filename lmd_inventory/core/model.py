# lmd_inventory/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Iterator

ENTRY_FIELDS: tuple[str, ...] = ("fullpath", "group", "label", "material", "tube_set", "dataset")

# alternative spellings accepted by field selectors
_FIELD_ALIASES: dict[str, str] = {
    "tubeSet": "tube_set",
    "filepath": "fullpath",
}

def resolve_field(name: str) -> str:
    """Map a field selector (snake_case, 'tubeSet' or 'filepath') to a FlowEntry attribute."""
    key = _FIELD_ALIASES.get(str(name).strip(), str(name).strip())
    if key not in ENTRY_FIELDS:
        raise ValueError(f"unknown FlowEntry field '{name}' (expected one of {', '.join(ENTRY_FIELDS)})")
    return key

@dataclass(frozen=True)
class FlowEntry:
    fullpath: str             # <root>/<group>/<filename>
    group: str                # name of the parent subdirectory
    label: str                # e.g. 2017-01
    material: str             # alphanumeric sample id
    tube_set: int             # single digit 0-9
    dataset: str              # tag of the scan batch

    def value_of(self, name: str):
        return getattr(self, resolve_field(name))

    def as_dict(self) -> dict:
        return asdict(self)

@dataclass
class GroupedResult:
    """
    Entries bucketed by one field.

    keys keeps the first-seen order of the buckets; groups maps each key to its
    entries in input order. No entry is in more than one bucket.
    """
    keys: list[str] = field(default_factory=list)
    groups: dict[str, list[FlowEntry]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def __contains__(self, key) -> bool:
        return key in self.groups

    def __getitem__(self, key: str) -> list[FlowEntry]:
        return self.groups[key]

    def items(self) -> list[tuple[str, list[FlowEntry]]]:
        return [(k, self.groups[k]) for k in self.keys]

    def sizes(self) -> dict[str, int]:
        return {k: len(self.groups[k]) for k in self.keys}

    def flatten(self) -> list[FlowEntry]:
        out: list[FlowEntry] = []
        for k in self.keys:
            out.extend(self.groups[k])
        return out
