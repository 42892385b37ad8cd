from __future__ import annotations

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from pagespy.core.config import ENGINE_VERSION
from pagespy.schemas.context import PageSummaryV1, ScanError
from pagespy.schemas.types import TimingsMs, VerdictV1

ReportStatus = Literal["detected", "no_cdn", "failed"]


class EngineInfoV1(BaseModel):
    name: str = "pagespy"
    engine_version: str = ENGINE_VERSION
    build: str = "dev"
    mode: str = "hostname_cname"


class TimeInfoV1(BaseModel):
    started_at: str
    finished_at: str
    duration_ms: int


class CandidatesV1(BaseModel):
    hosts: List[str] = Field(default_factory=list)
    subdomains: List[str] = Field(default_factory=list)
    external_hosts: List[str] = Field(default_factory=list)


class DetectionReportV1(BaseModel):
    schema_version: str = "cdnreport.v1"
    run_id: str
    engine: EngineInfoV1 = Field(default_factory=EngineInfoV1)
    time: TimeInfoV1
    input: str
    status: ReportStatus
    error: Optional[str] = None

    page: Optional[PageSummaryV1] = None
    candidates: CandidatesV1 = Field(default_factory=CandidatesV1)
    cnames: Dict[str, List[str]] = Field(default_factory=dict)
    verdict: Optional[VerdictV1] = None
    timings_ms: TimingsMs = Field(default_factory=TimingsMs)
    errors: List[ScanError] = Field(default_factory=list)
