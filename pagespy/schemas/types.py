from __future__ import annotations
from typing import Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from pagespy.core.config import DEFAULT_RETRIES, HTTP_TIMEOUT_TOTAL, RETRY_BACKOFF

DetectionStage = Literal["subdomain_cname", "external_hostname", "external_cname"]

# --- Modèles de base ---

class FetchConfig(BaseModel):
    """Paramètres d'un chargement de page. Construit par appel."""
    retries: int = Field(default=DEFAULT_RETRIES, ge=0)
    timeout: Optional[float] = Field(default=HTTP_TIMEOUT_TOTAL, gt=0)
    # Délai de base entre tentatives (exponentiel), 0 = aucun délai
    backoff: float = Field(default=RETRY_BACKOFF, ge=0)

class TimingsMs(BaseModel):
    """Modèle structuré pour les temps de réponse."""
    total: int = 0
    fetch: Optional[int] = None
    dns: Optional[int] = None

# --- Transport ---

class RawResponse(BaseModel):
    """Ce que renvoie un transport HTTP pour une tentative."""
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    effective_url: Optional[str] = None
    body: str = ""
    truncated: bool = False

class ResponseMetaV1(BaseModel):
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    effective_url: Optional[str] = None
    truncated: bool = False

# --- Artefacts de détection ---

class HostGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    resources: Tuple[str, ...] = ()

class CNAMEResolutionV1(BaseModel):
    # Une clé par hostname interrogé, dans l'ordre des requêtes
    cnames: Dict[str, List[str]] = Field(default_factory=dict)
    failures: Dict[str, str] = Field(default_factory=dict)

class VerdictV1(BaseModel):
    cdn: str
    hostname: str
    # Nom qui a réellement matché (hostname lui-même ou cible CNAME)
    matched_name: str
    stage: DetectionStage
