"""Publish workflow — push newly built charts into a remote chart repository.

Order of operations for one invocation:

1. Load the local index (fatal if missing; no network call is made).
2. Load the remote index (404 means first deployment, i.e. empty).
3. Merge local into remote.  Conflicts abort before anything is written.
4. Nothing added: done, no writes.
5. Read every added archive and check it against its recorded digest.
6. Upload the archives one at a time, in merge order.
7. Upload the merged index last, so it never references a missing archive.

A failure at any step ends the run.  Re-running is safe: archives already
published with the same digest are skipped by the merge.
"""

from __future__ import annotations

import logging

from chartforge.core.errors import (
    ArchiveUploadError,
    DigestMismatchError,
    IndexUploadError,
    RemoteError,
)
from chartforge.core.hasher import normalize_digest, sha256_hex
from chartforge.core.index import MergeResult
from chartforge.core.publish_machine import PublishMachine
from chartforge.core.stores import LocalChartRepo, WritableRepository
from chartforge.models.charts import ChartRecord
from chartforge.models.publish import PublishResult, PublishState

logger = logging.getLogger(__name__)


class PublishWorkflow:
    """Runs a single publish from a local charts directory to a remote repository.

    Parameters
    ----------
    local:
        The local build output (``index.yaml`` + archives).
    remote:
        The writable remote repository.
    archive_extension:
        Extension of packaged archives, ``tgz`` for helm.
    verify_digests:
        Check each archive's SHA-256 against the index before uploading.
    """

    def __init__(
        self,
        local: LocalChartRepo,
        remote: WritableRepository,
        *,
        archive_extension: str = "tgz",
        verify_digests: bool = True,
    ) -> None:
        self.local = local
        self.remote = remote
        self.archive_extension = archive_extension
        self.verify_digests = verify_digests
        self.machine = PublishMachine()
        self.uploaded: list[str] = []

    @property
    def state(self) -> PublishState:
        return self.machine.state

    def run(self) -> PublishResult:
        """Execute the publish.  Any error moves the machine to FAILED and is re-raised."""
        try:
            return self._run()
        except Exception as exc:
            if not self.machine.is_terminal:
                self.machine.fail(exc)
            failed_in = self.machine.failed_from or self.machine.state
            logger.error("Publish failed in state %s: %s", failed_in.value, exc)
            raise

    def _run(self) -> PublishResult:
        local_index = self.local.get_index()
        self.machine.transition(PublishState.LOADED_LOCAL, f"{len(local_index)} chart(s)")

        remote_index = self.remote.get_index()
        self.machine.transition(PublishState.LOADED_REMOTE, f"{len(remote_index)} chart(s)")

        result = remote_index.merge(local_index)
        self.machine.transition(PublishState.MERGED, f"{len(result.added)} added")

        if not result.added:
            logger.info("No changes in remote repo index.")
            self.machine.transition(PublishState.NO_CHANGES)
            return self._result([])

        logger.info("There are %d new chart(s) to publish", len(result.added))
        archives = self._load_archives(result.added)
        self._upload_archives(archives)
        self.machine.transition(PublishState.ARTIFACTS_UPLOADED, f"{len(self.uploaded)} uploaded")

        self._upload_index(result)
        self.machine.transition(PublishState.INDEX_UPLOADED)
        logger.info("Charts deployed successfully.")
        return self._result(result.added)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _load_archives(self, records: list[ChartRecord]) -> list[tuple[str, bytes]]:
        """Read every archive to upload, verifying digests before any write."""
        archives: list[tuple[str, bytes]] = []
        for record in records:
            filename = record.archive_name(self.archive_extension)
            data = self.local.read_archive(filename)
            if self.verify_digests:
                actual = sha256_hex(data)
                if actual != normalize_digest(record.digest):
                    raise DigestMismatchError(filename, record.digest, actual)
            archives.append((filename, data))
        return archives

    def _upload_archives(self, archives: list[tuple[str, bytes]]) -> None:
        for filename, data in archives:
            try:
                self.remote.put_blob(filename, data)
            except RemoteError as exc:
                raise ArchiveUploadError(filename, self.uploaded, exc) from exc
            self.uploaded.append(filename)

    def _upload_index(self, result: MergeResult) -> None:
        try:
            self.remote.put_index(result.merged)
        except RemoteError as exc:
            raise IndexUploadError(self.uploaded, exc) from exc

    def _result(self, added: list[ChartRecord]) -> PublishResult:
        return PublishResult(
            state=self.machine.state,
            added=added,
            uploaded=list(self.uploaded),
            history=self.machine.history,
        )
