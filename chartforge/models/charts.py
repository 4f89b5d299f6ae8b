"""Chart version record model (immutable once published)."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from chartforge.core.errors import FormatError

_REQUIRED_FIELDS = ("name", "version", "digest")


class ChartRecord(BaseModel):
    """One published version of a chart, as listed in a repository index.

    ``name``, ``version`` and ``digest`` are lifted out for comparison.
    ``raw`` holds the full record exactly as helm wrote it (urls,
    description, created, ...), in its original key order.  The version
    is an opaque equality key; no ordering is implied.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    digest: str
    raw: dict[str, Any] = {}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ChartRecord:
        """Build a record from a raw index entry, keeping every field."""
        if not isinstance(raw, Mapping):
            raise FormatError(f"Chart record must be a mapping, got {type(raw).__name__}")
        missing = [f for f in _REQUIRED_FIELDS if raw.get(f) in (None, "")]
        if missing:
            raise FormatError(
                f"Chart record {dict(raw).get('name', '?')!s} is missing {', '.join(missing)}"
            )
        return cls(
            name=str(raw["name"]),
            version=str(raw["version"]),
            digest=str(raw["digest"]),
            raw=copy.deepcopy(dict(raw)),
        )

    def to_mapping(self) -> dict[str, Any]:
        """Return a deep copy of the raw record, suitable for serialization."""
        return copy.deepcopy(self.raw)

    def archive_name(self, extension: str = "tgz") -> str:
        """Archive filename used both locally and as the remote object name."""
        return f"{self.name}-{self.version}.{extension}"

    @property
    def key(self) -> tuple[str, str]:
        return self.name, self.version
