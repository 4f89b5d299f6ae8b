"""chartforge data models — all Pydantic v2, all frozen (immutable)."""

from chartforge.models.build import BuildParameters
from chartforge.models.charts import ChartRecord
from chartforge.models.publish import (
    SUCCESS_STATES,
    VALID_TRANSITIONS,
    PublishParameters,
    PublishResult,
    PublishState,
    PublishTransition,
)

__all__ = [
    # build
    "BuildParameters",
    # charts
    "ChartRecord",
    # publish
    "PublishState",
    "PublishTransition",
    "PublishParameters",
    "PublishResult",
    "VALID_TRANSITIONS",
    "SUCCESS_STATES",
]
