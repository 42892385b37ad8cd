from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from pagespy.core.config import DEFAULT_RETRIES, ENGINE_VERSION
from pagespy.core.errors import InvalidProtocol
from pagespy.core.normalize import normalize_url
from pagespy.schemas.types import FetchConfig
from pagespy.services.detection_engine import DetectionEngine

router = APIRouter()

# Table de signatures chargée une fois par processus
_engine: Optional[DetectionEngine] = None


def get_engine() -> DetectionEngine:
    global _engine
    if _engine is None:
        _engine = DetectionEngine()
    return _engine


class DetectRequest(BaseModel):
    url: str
    retries: int = Field(default=DEFAULT_RETRIES, ge=0, le=10)
    timeout: Optional[float] = Field(default=None, gt=0)


@router.get("/health")
def health():
    return {"status": "online", "engine_version": ENGINE_VERSION}


@router.get("/signatures")
def signatures():
    return [
        {"name": sig.name, "patterns": [p.pattern for p in sig.patterns]}
        for sig in get_engine().signatures
    ]


@router.post("/detect")
async def detect(req: DetectRequest):
    # Rejet immédiat des schémas non supportés (aucune requête émise)
    try:
        normalize_url(req.url)
    except (InvalidProtocol, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    config = FetchConfig(retries=req.retries)
    if req.timeout is not None:
        config.timeout = req.timeout

    return await get_engine().run(req.url, config)
