"""Error taxonomy for chart build and publish.

Every error aborts the running command.  The only conditions absorbed
without raising are a 404 on the remote index fetch (first deployment)
and re-adding a chart whose digest is already published (duplicate).
"""

from __future__ import annotations


class ChartforgeError(RuntimeError):
    """Base class for all chartforge errors."""


class ConfigurationError(ChartforgeError):
    """Raised when a required parameter is missing, before any I/O."""


class FormatError(ChartforgeError):
    """Raised when an index document is malformed or lacks ``entries``."""


class ConflictError(ChartforgeError):
    """Raised when a (name, version) pair is reused for different content."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(
            f"The {name}-{version} chart already exists in the upstream repo "
            "but its content is different from the chart that's about to be added. "
            "Did you forget to bump the chart version when applying changes?"
        )


class DigestMismatchError(ChartforgeError):
    """Raised when an archive's bytes do not match the digest in the index."""

    def __init__(self, filename: str, expected: str, actual: str) -> None:
        self.filename = filename
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Archive {filename} has digest {actual} but the index records {expected}. "
            "Rebuild the charts so the index and the archives agree."
        )


class LocalRepositoryError(ChartforgeError):
    """Raised when the local index or a local archive cannot be read."""


class RemoteError(ChartforgeError):
    """Raised on a transport-level failure against the remote repository.

    Parameters
    ----------
    message:
        Human readable description, including the upstream reason.
    url:
        The URL of the failed request, if any.
    status_code:
        The upstream HTTP status, or ``None`` for network failures.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ArchiveUploadError(RemoteError):
    """An archive upload failed; the index was not updated.

    ``uploaded`` lists archives already written remotely.  They stay
    unreferenced until a later publish succeeds and re-adds them.
    """

    def __init__(
        self,
        filename: str,
        uploaded: list[str],
        cause: RemoteError,
    ) -> None:
        self.filename = filename
        self.uploaded = list(uploaded)
        done = ", ".join(uploaded) if uploaded else "none"
        super().__init__(
            f"Publishing stopped at {filename}: {cause}. "
            f"Archives already uploaded: {done}. The remote index was not updated.",
            url=cause.url,
            status_code=cause.status_code,
        )


class IndexUploadError(RemoteError):
    """All archives were uploaded but the merged index could not be written.

    Retrying the index upload alone would complete the publish.
    """

    def __init__(self, uploaded: list[str], cause: RemoteError) -> None:
        self.uploaded = list(uploaded)
        super().__init__(
            f"Uploaded {len(uploaded)} archive(s) but failed to update the remote "
            f"index: {cause}. The archives are in place; only the index upload "
            "needs to be retried.",
            url=cause.url,
            status_code=cause.status_code,
        )


class InvalidTransitionError(ChartforgeError):
    """Raised when a requested publish state transition is not valid."""


class BuildError(ChartforgeError):
    """Raised when packaging charts or building the local index fails."""


class CommandNotFoundError(BuildError):
    """Raised when an external tool is not installed or not on ``$PATH``."""


class CommandFailedError(BuildError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"`{command}` failed: {detail}")
