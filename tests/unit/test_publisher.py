"""Tests for PublishWorkflow — ordering, idempotence and failure semantics."""

from __future__ import annotations

from pathlib import Path

import pytest

from chartforge.core.errors import (
    ArchiveUploadError,
    ConflictError,
    DigestMismatchError,
    IndexUploadError,
    LocalRepositoryError,
    RemoteError,
)
from chartforge.core.publisher import PublishWorkflow
from chartforge.core.stores import LocalChartRepo
from chartforge.models.publish import PublishState


class TestHappyPath:
    def test_bootstrap_publishes_everything(self, write_local_repo, remote):
        local = write_local_repo(("api", "1.0.0"), ("web", "2.0.0"), ("worker", "0.1.0"))
        workflow = PublishWorkflow(local, remote)

        result = workflow.run()

        assert result.state == PublishState.INDEX_UPLOADED
        assert len(result.added) == 3
        assert sorted(remote.blobs) == ["api-1.0.0.tgz", "web-2.0.0.tgz", "worker-0.1.0.tgz"]
        assert len(remote.index) == 3

    def test_index_uploaded_last(self, write_local_repo, remote):
        local = write_local_repo(("api", "1.0.0"), ("web", "2.0.0"))
        PublishWorkflow(local, remote).run()
        assert remote.calls == [
            "get_index",
            "put_blob:api-1.0.0.tgz",
            "put_blob:web-2.0.0.tgz",
            "put_index",
        ]

    def test_second_publish_has_no_changes(self, write_local_repo, remote):
        local = write_local_repo(("api", "1.0.0"))
        PublishWorkflow(local, remote).run()
        remote.calls.clear()

        result = PublishWorkflow(local, remote).run()

        assert result.state == PublishState.NO_CHANGES
        assert result.added == []
        assert remote.calls == ["get_index"]

    def test_only_new_versions_are_uploaded(
        self, write_local_repo, make_record, make_index, make_remote
    ):
        remote = make_remote(make_index(make_record("api", "1.0.0")))
        local = write_local_repo(("api", "1.0.0"), ("api", "1.1.0"))

        result = PublishWorkflow(local, remote).run()

        assert [r.version for r in result.added] == ["1.1.0"]
        assert list(remote.blobs) == ["api-1.1.0.tgz"]
        assert remote.index.versions("api") == ["1.1.0", "1.0.0"]

    def test_history_records_every_state(self, write_local_repo, remote):
        local = write_local_repo(("api", "1.0.0"))
        result = PublishWorkflow(local, remote).run()
        assert [t.to_state for t in result.history] == [
            PublishState.LOADED_LOCAL,
            PublishState.LOADED_REMOTE,
            PublishState.MERGED,
            PublishState.ARTIFACTS_UPLOADED,
            PublishState.INDEX_UPLOADED,
        ]


class TestFailures:
    def test_missing_local_index_makes_no_remote_calls(self, tmp_path: Path, remote):
        workflow = PublishWorkflow(LocalChartRepo(tmp_path), remote)
        with pytest.raises(LocalRepositoryError):
            workflow.run()
        assert remote.calls == []
        assert workflow.state == PublishState.FAILED
        assert workflow.machine.failed_from == PublishState.IDLE

    def test_remote_fetch_failure(self, write_local_repo, remote, monkeypatch):
        def _boom():
            raise RemoteError("Unable to get repository index. 401 Unauthorized", status_code=401)

        monkeypatch.setattr(remote, "get_index", _boom)
        workflow = PublishWorkflow(write_local_repo(("api", "1.0.0")), remote)
        with pytest.raises(RemoteError):
            workflow.run()
        assert workflow.machine.failed_from == PublishState.LOADED_LOCAL
        assert remote.blobs == {}

    def test_conflict_aborts_before_any_write(
        self, write_local_repo, make_record, make_index, make_remote
    ):
        remote = make_remote(make_index(make_record("api", "1.0.0", digest="X")))
        local = write_local_repo(("web", "1.0.0"), ("api", "1.0.0"))
        workflow = PublishWorkflow(local, remote)

        with pytest.raises(ConflictError):
            workflow.run()

        assert remote.calls == ["get_index"]
        assert workflow.machine.failed_from == PublishState.LOADED_REMOTE

    def test_blob_failure_never_uploads_index(self, write_local_repo, make_remote):
        remote = make_remote(fail_blob_at=2)
        local = write_local_repo(("a", "1.0.0"), ("b", "1.0.0"), ("c", "1.0.0"))
        workflow = PublishWorkflow(local, remote)

        with pytest.raises(ArchiveUploadError) as excinfo:
            workflow.run()

        assert "put_index" not in remote.calls
        assert excinfo.value.filename == "b-1.0.0.tgz"
        assert excinfo.value.uploaded == ["a-1.0.0.tgz"]
        assert excinfo.value.status_code == 503
        assert not isinstance(excinfo.value, (ConflictError, LocalRepositoryError))
        assert workflow.state == PublishState.FAILED
        assert workflow.machine.failed_from == PublishState.MERGED

    def test_retry_after_blob_failure_succeeds(self, write_local_repo, make_remote):
        remote = make_remote(fail_blob_at=2)
        local = write_local_repo(("a", "1.0.0"), ("b", "1.0.0"))
        with pytest.raises(ArchiveUploadError):
            PublishWorkflow(local, remote).run()

        remote.fail_blob_at = None
        result = PublishWorkflow(local, remote).run()

        assert result.state == PublishState.INDEX_UPLOADED
        assert len(remote.index) == 2

    def test_index_failure_is_reported_distinctly(self, write_local_repo, make_remote):
        remote = make_remote(fail_index=True)
        local = write_local_repo(("a", "1.0.0"), ("b", "1.0.0"))
        workflow = PublishWorkflow(local, remote)

        with pytest.raises(IndexUploadError) as excinfo:
            workflow.run()

        assert excinfo.value.uploaded == ["a-1.0.0.tgz", "b-1.0.0.tgz"]
        assert workflow.machine.failed_from == PublishState.ARTIFACTS_UPLOADED
        assert len(remote.index) == 0

    def test_digest_mismatch_blocks_all_uploads(self, write_local_repo, charts_dir, remote):
        local = write_local_repo(("a", "1.0.0"), ("b", "1.0.0"))
        (charts_dir / "b-1.0.0.tgz").write_bytes(b"regenerated content")

        with pytest.raises(DigestMismatchError, match="b-1.0.0.tgz"):
            PublishWorkflow(local, remote).run()

        assert remote.blobs == {}
        assert "put_index" not in remote.calls

    def test_digest_check_can_be_disabled(self, write_local_repo, charts_dir, remote):
        local = write_local_repo(("a", "1.0.0"))
        (charts_dir / "a-1.0.0.tgz").write_bytes(b"regenerated content")

        result = PublishWorkflow(local, remote, verify_digests=False).run()

        assert result.state == PublishState.INDEX_UPLOADED
        assert remote.blobs["a-1.0.0.tgz"] == b"regenerated content"

    def test_missing_archive_is_local_error(self, write_local_repo, charts_dir, remote):
        local = write_local_repo(("a", "1.0.0"))
        (charts_dir / "a-1.0.0.tgz").unlink()
        with pytest.raises(LocalRepositoryError):
            PublishWorkflow(local, remote).run()
        assert remote.blobs == {}
