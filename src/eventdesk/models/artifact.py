"""Artifact models - documents and tasks shared across the roster."""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from eventdesk.models.enums import ArtifactKind, TaskStatus
from eventdesk.models.sharing import EffectiveViewers, SharingSpec


class Document(BaseModel):
    """Uploaded file with sharing metadata. The blob itself is immutable."""

    document_id: UUID
    event_id: UUID
    name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_by: Optional[str] = None
    sharing: SharingSpec = Field(default_factory=SharingSpec.private)
    created_at: datetime
    updated_at: datetime

    @property
    def artifact_id(self) -> UUID:
        return self.document_id

    @property
    def kind(self) -> ArtifactKind:
        return ArtifactKind.DOCUMENT


class Task(BaseModel):
    """Operator-owned to-do item. Assignees are derived from ``sharing``."""

    task_id: UUID
    event_id: UUID
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: TaskStatus = TaskStatus.TODO
    sharing: SharingSpec = Field(default_factory=SharingSpec.private)
    created_by: str
    created_at: datetime
    updated_at: datetime

    @property
    def artifact_id(self) -> UUID:
        return self.task_id

    @property
    def kind(self) -> ArtifactKind:
        return ArtifactKind.TASK


Artifact = Union[Document, Task]


class ArtifactVisibility(BaseModel):
    """An artifact together with its resolved viewers."""

    kind: ArtifactKind
    artifact_id: UUID
    viewers: EffectiveViewers
