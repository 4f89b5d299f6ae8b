"""Chart repository stores — the local build output and the remote repository.

Both expose ``get_index()``.  Only the remote store is writable:

- ``LocalChartRepo`` reads ``<charts_dir>/index.yaml`` and the packaged
  archives helm wrote next to it.  A missing local index is fatal.
- ``RemoteChartRepo`` talks plain HTTP to the repository: GET and PUT of
  ``index.yaml`` and PUT of archives, with optional Basic auth.  A 404 on
  the index means the repository has never been published to.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from chartforge.core.errors import (
    ConfigurationError,
    FormatError,
    LocalRepositoryError,
    RemoteError,
)
from chartforge.core.index import IndexDocument
from chartforge.models.charts import ChartRecord

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.yaml"
ARCHIVE_CONTENT_TYPE = "application/x-tgz"
INDEX_CONTENT_TYPE = "text/x-yaml"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class IndexSource(Protocol):
    """Anything that can produce the current repository index."""

    def get_index(self) -> IndexDocument:
        ...


@runtime_checkable
class WritableRepository(IndexSource, Protocol):
    """An index source that also accepts archive and index uploads."""

    def put_blob(self, filename: str, data: bytes) -> None:
        ...

    def put_index(self, document: IndexDocument) -> None:
        ...


# ---------------------------------------------------------------------------
# Local
# ---------------------------------------------------------------------------


class LocalChartRepo:
    """Read-only view of a directory produced by ``helm package`` + ``helm repo index``.

    Parameters
    ----------
    charts_dir:
        Directory holding the packaged archives and ``index.yaml``.
    """

    def __init__(self, charts_dir: Path) -> None:
        self.charts_dir = Path(charts_dir)

    @property
    def index_path(self) -> Path:
        return self.charts_dir / INDEX_FILENAME

    def get_index(self) -> IndexDocument:
        source = f"local index {self.index_path}"
        try:
            content = self.index_path.read_text(encoding="utf-8")
            return IndexDocument.parse(content, source=source)
        except (OSError, FormatError) as exc:
            raise LocalRepositoryError(
                f"Unable to load local repo index: {self.charts_dir}. {exc}"
            ) from exc

    def archive_path(self, record: ChartRecord, extension: str = "tgz") -> Path:
        return self.charts_dir / record.archive_name(extension)

    def read_archive(self, filename: str) -> bytes:
        path = self.charts_dir / filename
        try:
            return path.read_bytes()
        except OSError as exc:
            raise LocalRepositoryError(f"Unable to read chart archive {path}. {exc}") from exc


# ---------------------------------------------------------------------------
# Remote
# ---------------------------------------------------------------------------


class RemoteChartRepo:
    """HTTP chart repository (e.g. a Nexus/Artifactory raw or helm-hosted repo).

    Parameters
    ----------
    repository:
        Base URL of the repository.  Required.
    username, password:
        Basic-auth credentials.  Both must be set for auth to be attached;
        otherwise every call is anonymous.
    client:
        An ``httpx.Client`` to use.  When omitted, the repo creates and owns
        one with the given ``timeout``.
    """

    def __init__(
        self,
        repository: str | None,
        username: str | None = None,
        password: str | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not repository:
            raise ConfigurationError("Missing --repository parameter.")
        self.repository = repository.rstrip("/")
        self._auth = httpx.BasicAuth(username, password) if username and password else None
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> RemoteChartRepo:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def url_for(self, filename: str) -> str:
        return f"{self.repository}/{filename}"

    @property
    def index_url(self) -> str:
        return self.url_for(INDEX_FILENAME)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_index(self) -> IndexDocument:
        """Fetch and parse the remote index; 404 yields an empty index."""
        url = self.index_url
        message = f"Unable to get repository index {url}"
        try:
            response = self._client.get(url, auth=self._auth)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{message}. {exc}", url=url) from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.warning(
                "%s. The index file is missing. Assuming this is the first deployment.",
                message,
            )
            return IndexDocument.empty()
        if response.is_error:
            raise RemoteError(
                f"{message}. {response.status_code} {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )
        return IndexDocument.parse(response.content, source=f"remote index {url}")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put_blob(self, filename: str, data: bytes) -> None:
        logger.info("Publishing %s", filename)
        self._upload(filename, data, ARCHIVE_CONTENT_TYPE)

    def put_index(self, document: IndexDocument) -> None:
        logger.info("Updating remote repo index")
        self._upload(INDEX_FILENAME, document.serialize().encode("utf-8"), INDEX_CONTENT_TYPE)

    def _upload(self, filename: str, data: bytes, content_type: str) -> None:
        url = self.url_for(filename)
        try:
            response = self._client.put(
                url,
                content=data,
                headers={"content-type": content_type},
                auth=self._auth,
            )
        except httpx.HTTPError as exc:
            raise RemoteError(f"Unable to upload {filename}. {exc}", url=url) from exc
        if response.is_error:
            raise RemoteError(
                f"Unable to upload {filename}. "
                f"{response.status_code} {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )
