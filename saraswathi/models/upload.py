"""Upload bookkeeping record.

One ``Upload`` is written per accepted file.  It links to the placeholder
manuscript created alongside it and tracks the background enrichment job:
``processing`` until the pipeline converges, then ``completed`` (including
partial enrichment) or ``failed``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class UploadStatus(str, Enum):  # noqa: UP042
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Upload(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    file_name: str
    original_name: str
    mime_type: str
    size: int
    # Email when the uploader has one, otherwise the JWT user id.
    uploaded_by: str
    image_url: str
    file_url: str = ""
    thumbnail_url: str = ""
    optimized_url: str = ""
    manuscript_id: str = ""
    status: UploadStatus = UploadStatus.PROCESSING
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
