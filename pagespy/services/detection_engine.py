from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import ulid

from pagespy.core.config import MAX_CONCURRENT_DNS_LOOKUPS, MIN_STATIC_ASSETS_PER_HOST
from pagespy.core.data_loader import load_cdn_signatures
from pagespy.core.errors import FetchError
from pagespy.core.report import build_report_from_context
from pagespy.core.signatures import CDNSignature, match_cdn_hostname
from pagespy.scanner.dns import CNAMEResolver, DnspythonResolver, resolve_cnames
from pagespy.scanner.http import HTTPTransport, fetch_page
from pagespy.scanner.page import FetchedPage
from pagespy.schemas.context import DetectionContext, PageSummaryV1
from pagespy.schemas.types import DetectionStage, FetchConfig, VerdictV1

logger = logging.getLogger("pagespy.engine")


class DetectionEngine:
    """
    Orchestrateur de détection CDN.
    Pipeline : Chargement -> Extraction -> Heuristique multi-étapes -> Rapport.
    """

    def __init__(
        self,
        transport: Optional[HTTPTransport] = None,
        resolver: Optional[CNAMEResolver] = None,
        signatures: Optional[Tuple[CDNSignature, ...]] = None,
        max_concurrent_lookups: int = MAX_CONCURRENT_DNS_LOOKUPS,
    ) -> None:
        # transport None : fetch_page ouvre (et ferme) un client httpx par chargement
        self.transport = transport
        self.resolver: CNAMEResolver = resolver or DnspythonResolver()
        # Table chargée une seule fois, jamais mutée
        self.signatures = signatures if signatures is not None else load_cdn_signatures()
        self.max_concurrent_lookups = max_concurrent_lookups

    async def load(self, url: str, config: Optional[FetchConfig] = None) -> FetchedPage:
        return await fetch_page(url, config, self.transport)

    def match_hostname(self, hostname: str) -> Optional[str]:
        return match_cdn_hostname(hostname, self.signatures)

    def candidate_hosts(self, page: FetchedPage) -> List[str]:
        """Hosts servant au moins MIN_STATIC_ASSETS_PER_HOST assets statiques."""
        return [
            group.hostname
            for group in page.static_assets_by_host()
            if len(group.resources) >= MIN_STATIC_ASSETS_PER_HOST
        ]

    async def _lookup_cnames(
        self,
        hostnames: Sequence[str],
        stage: DetectionStage,
        ctx: Optional[DetectionContext],
    ) -> Optional[VerdictV1]:
        if not hostnames:
            return None

        t0 = time.perf_counter()
        resolution = await resolve_cnames(
            hostnames, self.resolver, asyncio.Semaphore(self.max_concurrent_lookups)
        )
        if ctx is not None:
            ctx.cnames.update(resolution.cnames)
            ctx.timings_ms.dns = (ctx.timings_ms.dns or 0) + int((time.perf_counter() - t0) * 1000)
            for hostname, reason in resolution.failures.items():
                ctx.add_error("dns", "cname_lookup_failed", f"{hostname}: {reason}")

        return self._match_cnames(hostnames, resolution.cnames, stage)

    def _match_cnames(
        self,
        hostnames: Sequence[str],
        cnames: Dict[str, List[str]],
        stage: DetectionStage,
    ) -> Optional[VerdictV1]:
        for hostname in hostnames:
            for cname in cnames.get(hostname, []):
                cdn = self.match_hostname(cname)
                if cdn:
                    return VerdictV1(cdn=cdn, hostname=hostname, matched_name=cname, stage=stage)
        return None

    async def detect_cdn(
        self, page: FetchedPage, ctx: Optional[DetectionContext] = None
    ) -> Optional[VerdictV1]:
        """
        Heuristique ordonnée, la première correspondance termine la recherche :
        CNAME des sous-domaines -> hostname externe -> CNAME des hosts externes.
        """
        # 1. Hosts candidats (seuil minimal de signal)
        hosts = self.candidate_hosts(page)

        # 2. Partition sous-domaines / hosts externes (ordre conservé)
        subdomains = [h for h in hosts if page.is_subdomain(h)]
        external_hosts = [h for h in hosts if not page.is_subdomain(h)]

        if ctx is not None:
            ctx.candidate_hosts = hosts
            ctx.subdomains = subdomains
            ctx.external_hosts = external_hosts

        # 3. CNAME des sous-domaines (signal le plus fort)
        logger.debug(f"Checking subdomain CNAME(s): {subdomains}")
        verdict = await self._lookup_cnames(subdomains, "subdomain_cname", ctx)
        if verdict:
            return verdict

        # 4. Match direct des hosts externes (aucun appel réseau)
        logger.debug(f"Checking if external hosts are CDNs: {external_hosts}")
        for hostname in external_hosts:
            cdn = self.match_hostname(hostname)
            if cdn:
                return VerdictV1(
                    cdn=cdn, hostname=hostname, matched_name=hostname, stage="external_hostname"
                )

        # 5. CNAME des hosts externes (signal le plus faible et le plus coûteux)
        return await self._lookup_cnames(external_hosts, "external_cname", ctx)

    async def detect(self, url: str, config: Optional[FetchConfig] = None) -> Optional[VerdictV1]:
        """Point d'entrée bibliothèque. Les FetchError sont propagées."""
        page = await self.load(url, config)
        return await self.detect_cdn(page)

    async def run(self, url: str, config: Optional[FetchConfig] = None) -> dict:
        """
        Point d'entrée "rapport" : ne lève jamais, status failed en cas d'échec.
        """
        ctx = DetectionContext(run_id=str(ulid.new()), input=url)
        status = "failed"
        error: Optional[str] = None

        # 1. Chargement (les erreurs abortent la détection)
        t0 = time.perf_counter()
        try:
            page = await self.load(url, config)
        except FetchError as e:
            ctx.add_error("http", type(e).__name__, str(e))
            error = f"Fetch failed: {str(e)}"
            page = None
        except ValueError as e:
            ctx.add_error("http", "invalid_url", str(e))
            error = f"Normalization failed: {str(e)}"
            page = None
        except Exception as e:
            ctx.add_error("engine", "critical_failure", str(e))
            error = f"Fetch crashed: {type(e).__name__}"
            page = None
        ctx.timings_ms.fetch = int((time.perf_counter() - t0) * 1000)

        # 2. Heuristique
        if page is not None:
            ctx.page = PageSummaryV1(
                url=page.url,
                hostname=page.hostname,
                body_size=page.body_size,
                attempts=page.attempts,
                resources_total=len(page.resources),
                response=page.response,
            )
            try:
                ctx.verdict = await self.detect_cdn(page, ctx)
                status = "detected" if ctx.verdict else "no_cdn"
            except Exception as e:
                ctx.add_error("engine", "critical_failure", str(e))
                error = f"Detection failed: {type(e).__name__}"

        if ctx.verdict:
            logger.info(f"{ctx.input}: {ctx.verdict.cdn} via {ctx.verdict.hostname} ({ctx.verdict.stage})")

        # 3. Finalisation du rapport
        finished_at = datetime.now(timezone.utc)
        duration_ms = int((finished_at - ctx.started_at).total_seconds() * 1000)

        return build_report_from_context(ctx, finished_at, duration_ms, status, error).model_dump()
