from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

import dns.exception
import dns.resolver

from pagespy.core.config import DNS_TIMEOUT
from pagespy.core.errors import DNSLookupFailure
from pagespy.schemas.types import CNAMEResolutionV1

logger = logging.getLogger("pagespy.dns")


class CNAMEResolver(Protocol):
    """Capacité injectée : cibles CNAME d'un hostname, lève en cas d'échec."""

    async def resolve_cname(self, hostname: str) -> List[str]: ...


class DnspythonResolver:
    """Résolveur par défaut : dnspython synchrone exécuté dans un thread."""

    def __init__(self, timeout: float = DNS_TIMEOUT, nameservers: Optional[List[str]] = None) -> None:
        self.timeout = timeout
        self.nameservers = nameservers

    def _resolve_sync(self, hostname: str) -> List[str]:
        resolver = dns.resolver.Resolver()
        resolver.timeout = self.timeout
        resolver.lifetime = self.timeout
        if self.nameservers:
            resolver.nameservers = self.nameservers

        try:
            answers = resolver.resolve(hostname, "CNAME")
        except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN) as e:
            raise DNSLookupFailure(hostname, type(e).__name__, no_data=True) from e
        except dns.exception.DNSException as e:
            raise DNSLookupFailure(hostname, type(e).__name__) from e
        return [r.to_text().rstrip(".") for r in answers]

    async def resolve_cname(self, hostname: str) -> List[str]:
        return await asyncio.to_thread(self._resolve_sync, hostname)


async def resolve_cnames(
    hostnames: Sequence[str],
    resolver: CNAMEResolver,
    semaphore: Optional[asyncio.Semaphore] = None,
) -> CNAMEResolutionV1:
    """
    Fan-out d'une résolution par hostname puis jointure (gather).
    Un échec individuel est absorbé : liste vide pour ce host, les autres continuent.
    """
    result = CNAMEResolutionV1()
    if not hostnames:
        return result

    async def _resolve_one(hostname: str) -> List[str]:
        try:
            if semaphore:
                async with semaphore:
                    cnames = await resolver.resolve_cname(hostname)
            else:
                cnames = await resolver.resolve_cname(hostname)
        except DNSLookupFailure as e:
            if e.no_data:
                # Host sans CNAME : cas nominal, pas un diagnostic
                logger.debug(f"No CNAME for {hostname} ({e.reason})")
                return []
            logger.warning(f"CNAME lookup failed for {hostname}: {e}")
            result.failures[hostname] = str(e)
            return []
        except Exception as e:
            logger.warning(f"CNAME lookup failed for {hostname}: {e}")
            result.failures[hostname] = str(e) or type(e).__name__
            return []

        cnames = [c.rstrip(".") for c in (cnames or []) if c]
        if cnames:
            logger.debug(f"Host {hostname} has CNAME(s): {cnames}")
        return cnames

    resolved = await asyncio.gather(*[_resolve_one(h) for h in hostnames])

    # Reconstruction dans l'ordre d'origine, indépendamment de l'ordre de complétion
    for hostname, cnames in zip(hostnames, resolved):
        result.cnames[hostname] = cnames
    return result
