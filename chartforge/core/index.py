"""Repository index document — find, add, merge and serialize chart records.

The index is a YAML mapping with an ``entries`` map of chart name to a
list of version records, newest first by publish order.  All other
top-level keys (``apiVersion``, ``generated``, ...) pass through untouched,
as do the extra fields inside each record.

Conflict rule: a (name, version) pair is bound to one digest forever.
Re-adding the same digest is a no-op; a different digest is an error.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from typing import Any, NamedTuple

import yaml

from chartforge.core.errors import ConflictError, FormatError
from chartforge.models.charts import ChartRecord

logger = logging.getLogger(__name__)

_STRING_TAGS = frozenset(
    {
        "tag:yaml.org,2002:timestamp",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
    }
)


class _IndexLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps and numbers as the strings written.

    Helm writes RFC 3339 timestamps with nanoseconds; PyYAML would truncate
    them to microseconds when building datetimes.  Chart names and versions
    are opaque text too: an unquoted ``version: 1.10`` must not become the
    float ``1.1`` and a chart named ``123`` must not become an int key.
    """


_IndexLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _STRING_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class MergeResult(NamedTuple):
    """A merged document and the records it gained, in merge order."""

    merged: IndexDocument
    added: list[ChartRecord]


class IndexDocument:
    """In-memory repository index.

    Merge never mutates either side: it works on a deep copy of ``self``
    and copies every record it takes from ``other``.

    Parameters
    ----------
    representation:
        The parsed document.  Must contain an ``entries`` mapping.
    source:
        Where the document came from, used in error messages.
    """

    def __init__(self, representation: Any, *, source: str = "index") -> None:
        if not isinstance(representation, dict) or not isinstance(
            representation.get("entries"), dict
        ):
            raise FormatError(f"The {source} must contain a collection of entries")
        for name, records in representation["entries"].items():
            if not isinstance(records, list):
                raise FormatError(
                    f"The {source} lists chart {name!r} as {type(records).__name__}, "
                    "expected a list of versions"
                )
            for raw in records:
                ChartRecord.from_mapping(raw)
        self._representation: dict[str, Any] = representation
        self.source = source

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls) -> IndexDocument:
        return cls({"apiVersion": "v1", "entries": {}}, source="empty index")

    @classmethod
    def parse(cls, serialized: str | bytes, *, source: str = "index") -> IndexDocument:
        """Parse a YAML index document.

        Raises ``FormatError`` for malformed YAML or a document without an
        ``entries`` collection, even if it is otherwise well formed.
        """
        try:
            representation = yaml.load(serialized, Loader=_IndexLoader)
        except yaml.YAMLError as exc:
            raise FormatError(f"The {source} is not valid YAML: {exc}") from exc
        return cls(representation, source=source)

    def clone(self) -> IndexDocument:
        return IndexDocument(copy.deepcopy(self._representation), source=self.source)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def api_version(self) -> str | None:
        return self._representation.get("apiVersion")

    @property
    def chart_names(self) -> list[str]:
        return list(self._representation["entries"])

    def find_chart(self, name: str, version: str) -> ChartRecord | None:
        """Return the record for ``name`` at ``version``, or ``None``."""
        for raw in self._representation["entries"].get(name) or []:
            if str(raw.get("version")) == version:
                return ChartRecord.from_mapping(raw)
        return None

    def versions(self, name: str) -> list[str]:
        """Versions of ``name`` in index order (newest publish first)."""
        return [str(raw["version"]) for raw in self._representation["entries"].get(name) or []]

    def iter_charts(self) -> Iterator[ChartRecord]:
        """Lazily yield every record, in map order then list order."""
        for records in self._representation["entries"].values():
            for raw in records:
                yield ChartRecord.from_mapping(raw)

    def __iter__(self) -> Iterator[ChartRecord]:
        return self.iter_charts()

    def __len__(self) -> int:
        return sum(len(records) for records in self._representation["entries"].values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndexDocument):
            return NotImplemented
        return self._representation == other._representation

    def __repr__(self) -> str:
        return f"IndexDocument(source={self.source!r}, charts={len(self)})"

    # ------------------------------------------------------------------
    # Mutation (only ever on a document this caller owns)
    # ------------------------------------------------------------------

    def add_chart(self, record: ChartRecord) -> bool:
        """Add ``record`` unless its (name, version) is already present.

        Returns ``True`` when the record was prepended to its chart's list,
        ``False`` when an identical record (same digest) already exists.
        Raises ``ConflictError`` when the existing digest differs.
        """
        existing = self.find_chart(record.name, record.version)
        if existing is not None:
            if existing.digest == record.digest:
                logger.info(
                    "The %s-%s chart already exists in the upstream repo with the "
                    "same content. Skipping.",
                    record.name,
                    record.version,
                )
                return False
            raise ConflictError(record.name, record.version)

        entries = self._representation["entries"]
        entries.setdefault(record.name, []).insert(0, record.to_mapping())
        return True

    def merge(self, other: IndexDocument) -> MergeResult:
        """Fold ``other`` into a clone of this document.

        A ``ConflictError`` aborts the whole merge; no partial document is
        returned and neither input is modified.
        """
        merged = self.clone()
        added: list[ChartRecord] = []
        for record in other.iter_charts():
            if merged.add_chart(record):
                added.append(record)
        return MergeResult(merged, added)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._representation)

    def serialize(self) -> str:
        return yaml.safe_dump(
            self._representation,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
