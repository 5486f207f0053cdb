"""Data contracts shared by the clients and the provisioning workflow."""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AzureResource(BaseModel):
    """Subset of a management-plane resource the workflow relies on."""

    id: str
    name: str
    location: Optional[str] = None
    provisioning_state: Optional[str] = None
    usage_threshold: Optional[int] = None
    snapshot_id: Optional[str] = Field(
        default=None, description="Service-side snapshot GUID, used to restore volumes"
    )


class StageStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageRecord(BaseModel):
    """Outcome of one provisioning or cleanup stage."""

    name: str
    status: StageStatus = StageStatus.PENDING
    resource_id: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class WorkflowState(BaseModel):
    """Stage outcomes, cleanup outcomes and exit status of one sample run.

    ``stages`` keeps provisioning order. A stage's ``resource_id`` is set once,
    when its creation call succeeds, and is what cleanup later deletes.
    """

    stages: List[StageRecord] = Field(default_factory=list)
    cleanup: List[StageRecord] = Field(default_factory=list)
    should_cleanup: bool = True
    exit_code: int = 0

    @classmethod
    def start(cls, stage_names: Sequence[str], should_cleanup: bool = True) -> "WorkflowState":
        return cls(
            stages=[StageRecord(name=name) for name in stage_names],
            should_cleanup=should_cleanup,
        )

    def record(self, name: str) -> StageRecord:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(f"unknown stage {name!r}")

    def next_stage(self) -> Optional[StageRecord]:
        """Get the first stage still pending."""
        for stage in self.stages:
            if stage.status is StageStatus.PENDING:
                return stage
        return None

    def is_finished(self) -> bool:
        """Return ``True`` when no stage is pending."""
        return self.next_stage() is None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def resource_id(self, name: str) -> Optional[str]:
        return self.record(name).resource_id

    def mark_started(self, name: str) -> None:
        self.record(name).started_at = _utcnow()

    def mark_succeeded(self, name: str, resource_id: Optional[str] = None) -> None:
        stage = self.record(name)
        if stage.resource_id is not None and resource_id != stage.resource_id:
            raise ValueError(f"stage {name!r} already holds resource {stage.resource_id}")
        stage.status = StageStatus.SUCCEEDED
        stage.resource_id = resource_id
        stage.completed_at = _utcnow()

    def mark_failed(self, name: str, error: str) -> None:
        stage = self.record(name)
        stage.status = StageStatus.FAILED
        stage.error = error
        stage.completed_at = _utcnow()
        self.exit_code = 1

    def skip_remaining(self) -> List[str]:
        """Mark every pending stage as skipped and return their names."""
        skipped = []
        for stage in self.stages:
            if stage.status is StageStatus.PENDING:
                stage.status = StageStatus.SKIPPED
                skipped.append(stage.name)
        return skipped

    def record_cleanup(
        self,
        name: str,
        status: StageStatus,
        resource_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> StageRecord:
        entry = StageRecord(
            name=name,
            status=status,
            resource_id=resource_id,
            error=error,
            completed_at=_utcnow(),
        )
        self.cleanup.append(entry)
        if status is StageStatus.FAILED:
            self.exit_code = 1
        logger.debug(f"Cleanup of {name} recorded as {status.value}")
        return entry
