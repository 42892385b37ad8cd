from __future__ import annotations

from datetime import datetime
from typing import Optional

from pagespy.schemas.context import DetectionContext
from pagespy.schemas.report_v1 import CandidatesV1, DetectionReportV1, TimeInfoV1


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def build_report_from_context(
    ctx: DetectionContext,
    finished_at: datetime,
    duration_ms: int,
    status: str,
    error: Optional[str] = None,
) -> DetectionReportV1:
    timings = ctx.timings_ms.model_copy(update={"total": duration_ms})

    return DetectionReportV1(
        run_id=ctx.run_id,
        time=TimeInfoV1(
            started_at=_iso(ctx.started_at),
            finished_at=_iso(finished_at),
            duration_ms=duration_ms,
        ),
        input=ctx.input,
        status=status,  # type: ignore[arg-type]
        error=error,
        page=ctx.page,
        candidates=CandidatesV1(
            hosts=ctx.candidate_hosts,
            subdomains=ctx.subdomains,
            external_hosts=ctx.external_hosts,
        ),
        cnames=ctx.cnames,
        verdict=ctx.verdict,
        timings_ms=timings,
        errors=ctx.errors,
    )
