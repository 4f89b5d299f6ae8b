"""Publish workflow models — states, transitions, parameters and results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from chartforge.models.charts import ChartRecord


class PublishState(str, Enum):
    """States of a single publish invocation."""

    IDLE = "idle"
    LOADED_LOCAL = "loaded_local"
    LOADED_REMOTE = "loaded_remote"
    MERGED = "merged"
    ARTIFACTS_UPLOADED = "artifacts_uploaded"
    INDEX_UPLOADED = "index_uploaded"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


# Valid state transitions — enforced by PublishMachine.
# Terminal states (INDEX_UPLOADED, NO_CHANGES, FAILED) have no outgoing transitions.
VALID_TRANSITIONS: dict[PublishState, set[PublishState]] = {
    PublishState.IDLE: {PublishState.LOADED_LOCAL, PublishState.FAILED},
    PublishState.LOADED_LOCAL: {PublishState.LOADED_REMOTE, PublishState.FAILED},
    PublishState.LOADED_REMOTE: {PublishState.MERGED, PublishState.FAILED},
    PublishState.MERGED: {
        PublishState.NO_CHANGES,
        PublishState.ARTIFACTS_UPLOADED,
        PublishState.FAILED,
    },
    PublishState.ARTIFACTS_UPLOADED: {PublishState.INDEX_UPLOADED, PublishState.FAILED},
    PublishState.INDEX_UPLOADED: set(),  # terminal
    PublishState.NO_CHANGES: set(),  # terminal
    PublishState.FAILED: set(),  # terminal
}

SUCCESS_STATES: frozenset[PublishState] = frozenset(
    {PublishState.INDEX_UPLOADED, PublishState.NO_CHANGES}
)


class PublishTransition(BaseModel):
    """Records a single state transition of a publish run."""

    model_config = ConfigDict(frozen=True)

    from_state: PublishState
    to_state: PublishState
    detail: str = ""


class PublishParameters(BaseModel):
    """Resolved parameters for one publish invocation."""

    model_config = ConfigDict(frozen=True)

    charts_dir: Path = Path("charts-output")
    repository: str
    username: str | None = None
    password: str | None = None
    archive_extension: str = "tgz"
    verify_digests: bool = True

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class PublishResult(BaseModel):
    """Outcome of a successful publish invocation."""

    model_config = ConfigDict(frozen=True)

    state: PublishState
    added: list[ChartRecord] = []
    uploaded: list[str] = []
    history: list[PublishTransition] = []

    @property
    def changed(self) -> bool:
        return self.state == PublishState.INDEX_UPLOADED
