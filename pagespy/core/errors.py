from __future__ import annotations

from typing import Optional


class PagespyError(Exception):
    """Exception de base du moteur de détection."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class FetchError(PagespyError):
    """Echec de la phase de chargement de la page (aborte la détection)."""

    def __init__(self, message: str, url: str = "", attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, url=url)


class InvalidProtocol(FetchError):
    """Schéma d'URL autre que http/https. Jamais retenté."""

    def __init__(self, protocol: str, url: str = ""):
        self.protocol = protocol
        super().__init__(f"Invalid protocol: {protocol}", url=url)


class TransportError(FetchError):
    """Erreur réseau remontée par le transport (timeout, reset, DNS...)."""


class HTTPStatusError(FetchError):
    """Réponse reçue mais code hors 2xx."""

    def __init__(self, url: str, status_code: int, attempts: int = 0):
        self.status_code = status_code
        super().__init__(f"{url} responded with a {status_code}", url=url, attempts=attempts)


class DNSLookupFailure(PagespyError):
    """Echec de résolution CNAME pour un hostname. Toujours absorbé par l'étage DNS."""

    def __init__(self, hostname: str, reason: Optional[str] = None, no_data: bool = False):
        self.hostname = hostname
        self.reason = reason or "lookup failed"
        # Réponse négative normale (NoAnswer / NXDOMAIN) : pas un incident
        self.no_data = no_data
        super().__init__(f"CNAME lookup failed for {hostname}: {self.reason}")
