from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from pagespy.schemas.types import ResponseMetaV1, TimingsMs, VerdictV1


class ScanError(BaseModel):
    component: str
    error_type: str
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PageSummaryV1(BaseModel):
    url: str
    hostname: str
    body_size: int = 0
    attempts: int = 1
    resources_total: int = 0
    response: Optional[ResponseMetaV1] = None


class DetectionContext(BaseModel):
    run_id: str
    input: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    page: Optional[PageSummaryV1] = None

    candidate_hosts: List[str] = Field(default_factory=list)
    subdomains: List[str] = Field(default_factory=list)
    external_hosts: List[str] = Field(default_factory=list)
    cnames: Dict[str, List[str]] = Field(default_factory=dict)

    verdict: Optional[VerdictV1] = None
    timings_ms: TimingsMs = Field(default_factory=TimingsMs)

    errors: List[ScanError] = Field(default_factory=list)

    def add_error(self, component: str, error_type: str, message: str):
        self.errors.append(
            ScanError(component=component, error_type=error_type, message=message)
        )
