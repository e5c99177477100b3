from typing import Optional, List
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class BlockError(BaseModel):
    """One block that could not be reconciled.

    ``kind`` is ``parse`` for grammar violations and ``store`` for failures
    of the entity or relation store.
    """
    kind: str
    source: Optional[str] = None
    block_index: int
    host: Optional[str] = None
    message: str


class ReconcileReport(BaseModel):
    source: Optional[str] = None
    implicit_group: Optional[str] = None
    hosts: List[str] = []
    skipped_blocks: int = 0
    errors: List[BlockError] = []

    @property
    def ok(self) -> bool:
        return not self.errors


class SourceError(BaseModel):
    source: str
    message: str


class SyncReport(BaseModel):
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    trigger: str = "manual"
    config_path: Optional[str] = None
    files: List[ReconcileReport] = []
    source_errors: List[SourceError] = []

    @property
    def ok(self) -> bool:
        return not self.source_errors and all(f.ok for f in self.files)

    @property
    def host_count(self) -> int:
        return sum(len(f.hosts) for f in self.files)

    @property
    def error_count(self) -> int:
        return len(self.source_errors) + sum(len(f.errors) for f in self.files)
