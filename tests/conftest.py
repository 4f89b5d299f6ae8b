"""Shared test fixtures for chartforge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from chartforge.core.errors import RemoteError
from chartforge.core.hasher import sha256_hex
from chartforge.core.index import IndexDocument
from chartforge.core.stores import LocalChartRepo
from chartforge.models.charts import ChartRecord


def archive_bytes(name: str, version: str, flavour: str = "") -> bytes:
    """Deterministic stand-in for a packaged chart archive."""
    return f"chart:{name}:{version}:{flavour}".encode()


def raw_record(name: str, version: str, digest: str, **extra: Any) -> dict[str, Any]:
    """A raw index entry shaped the way ``helm repo index`` writes it."""
    raw: dict[str, Any] = {
        "apiVersion": "v2",
        "created": "2024-03-01T10:15:30.123456789Z",
        "description": f"A Helm chart for {name}",
        "digest": digest,
        "name": name,
        "urls": [f"{name}-{version}.tgz"],
        "version": version,
    }
    raw.update(extra)
    return raw


@pytest.fixture
def make_record() -> Callable[..., ChartRecord]:
    """Factory fixture: build a ChartRecord with a digest matching its archive."""

    def _factory(
        name: str = "api",
        version: str = "1.0.0",
        digest: str | None = None,
        flavour: str = "",
        **extra: Any,
    ) -> ChartRecord:
        digest = digest or sha256_hex(archive_bytes(name, version, flavour))
        return ChartRecord.from_mapping(raw_record(name, version, digest, **extra))

    return _factory


@pytest.fixture
def make_index() -> Callable[..., IndexDocument]:
    """Factory fixture: build an IndexDocument from records, in the given order."""

    def _factory(*records: ChartRecord) -> IndexDocument:
        entries: dict[str, list[dict[str, Any]]] = {}
        for record in records:
            entries.setdefault(record.name, []).append(record.to_mapping())
        return IndexDocument(
            {"apiVersion": "v1", "entries": entries, "generated": "2024-03-01T10:15:31Z"}
        )

    return _factory


@pytest.fixture
def charts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "charts-output"
    path.mkdir()
    return path


@pytest.fixture
def write_local_repo(
    charts_dir: Path,
    make_record: Callable[..., ChartRecord],
) -> Callable[..., LocalChartRepo]:
    """Factory fixture: write archives and an index.yaml, return the LocalChartRepo.

    Each chart is ``(name, version)`` or ``(name, version, flavour)``; the
    flavour changes the archive bytes and therefore the digest.
    """

    def _factory(*charts: tuple[str, ...]) -> LocalChartRepo:
        entries: dict[str, list[dict[str, Any]]] = {}
        for chart in charts:
            name, version, *rest = chart
            flavour = rest[0] if rest else ""
            record = make_record(name, version, flavour=flavour)
            (charts_dir / record.archive_name()).write_bytes(
                archive_bytes(name, version, flavour)
            )
            entries.setdefault(name, []).append(record.to_mapping())
        index = {"apiVersion": "v1", "entries": entries, "generated": "2024-03-01T10:15:31Z"}
        (charts_dir / "index.yaml").write_text(yaml.safe_dump(index), encoding="utf-8")
        return LocalChartRepo(charts_dir)

    return _factory


class RecordingRemote:
    """In-memory WritableRepository that records every call.

    ``fail_blob_at`` makes the n-th (1-based) ``put_blob`` raise;
    ``fail_index`` makes ``put_index`` raise.
    """

    def __init__(
        self,
        index: IndexDocument | None = None,
        *,
        fail_blob_at: int | None = None,
        fail_index: bool = False,
    ) -> None:
        self.index = index if index is not None else IndexDocument.empty()
        self.fail_blob_at = fail_blob_at
        self.fail_index = fail_index
        self.blobs: dict[str, bytes] = {}
        self.calls: list[str] = []

    def get_index(self) -> IndexDocument:
        self.calls.append("get_index")
        return self.index.clone()

    def put_blob(self, filename: str, data: bytes) -> None:
        self.calls.append(f"put_blob:{filename}")
        if self.fail_blob_at is not None and len(self.blobs) + 1 == self.fail_blob_at:
            raise RemoteError(
                f"Unable to upload {filename}. 503 Service Unavailable",
                url=f"https://charts.example.com/{filename}",
                status_code=503,
            )
        self.blobs[filename] = data

    def put_index(self, document: IndexDocument) -> None:
        self.calls.append("put_index")
        if self.fail_index:
            raise RemoteError(
                "Unable to upload index.yaml. 500 Internal Server Error",
                url="https://charts.example.com/index.yaml",
                status_code=500,
            )
        self.index = document.clone()


@pytest.fixture
def remote() -> RecordingRemote:
    return RecordingRemote()


@pytest.fixture
def make_remote() -> Callable[..., RecordingRemote]:
    """Factory fixture: a RecordingRemote with optional failure injection."""
    return RecordingRemote
