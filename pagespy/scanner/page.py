from __future__ import annotations

import re
from functools import cached_property
from typing import Dict, List, Sequence
from urllib.parse import urlsplit

from pagespy.core.config import (
    MIN_STATIC_ASSETS_PER_GROUP,
    STATIC_ASSET_EXTENSIONS,
)
from pagespy.core.normalize import hostname_of, resolve_resource
from pagespy.schemas.types import HostGroup, ResponseMetaV1

# Scan lexical volontairement naïf : pas de parseur HTML
SRC_HREF_RE = re.compile(r"""\s(?:href|src)=(["'])(.+?)\1""", re.IGNORECASE | re.DOTALL)

STATIC_ASSET_RE = re.compile(
    r"\.(?:%s)$" % "|".join(re.escape(ext) for ext in STATIC_ASSET_EXTENSIONS),
    re.IGNORECASE,
)


def _sort_by_size(groups: List[HostGroup]) -> List[HostGroup]:
    # sorted() est stable : à taille égale, l'ordre de première apparition est conservé
    return sorted(groups, key=lambda g: len(g.resources), reverse=True)


def group_by_host(resources: Sequence[str]) -> List[HostGroup]:
    grouped: Dict[str, List[str]] = {}
    for resource in resources:
        grouped.setdefault(hostname_of(resource), []).append(resource)
    return _sort_by_size(
        [HostGroup(hostname=h, resources=tuple(r)) for h, r in grouped.items()]
    )


def is_static_asset(resource: str) -> bool:
    try:
        path = urlsplit(resource).path
    except ValueError:
        path = resource.split("?")[0].split("#")[0]
    return STATIC_ASSET_RE.search(path) is not None


def filter_static_assets(groups: Sequence[HostGroup]) -> List[HostGroup]:
    filtered = []
    for group in groups:
        assets = tuple(r for r in group.resources if is_static_asset(r))
        if len(assets) >= MIN_STATIC_ASSETS_PER_GROUP:
            filtered.append(HostGroup(hostname=group.hostname, resources=assets))
    return _sort_by_size(filtered)


class FetchedPage:
    """
    Page chargée, immuable après construction.
    Les ressources et leur regroupement par host sont calculés une seule fois.
    """

    def __init__(
        self,
        url: str,
        response: ResponseMetaV1,
        body: str,
        attempts: int = 1,
    ) -> None:
        self.url = url
        self.url_parts = urlsplit(url)
        self.response = response
        self.body = body or ""
        self.attempts = attempts

    def __repr__(self) -> str:
        return f"FetchedPage(url={self.url!r}, status={self.response.status_code})"

    @property
    def body_size(self) -> int:
        return len(self.body)

    @property
    def hostname(self) -> str:
        return self.url_parts.hostname or ""

    def is_subdomain(self, hostname: str) -> bool:
        """Vrai si `hostname` se termine par le host de la page (sans "www." initial)."""
        page_host = self.hostname.lower()
        if page_host.startswith("www."):
            page_host = page_host[4:]
        return (hostname or "").lower().endswith(page_host)

    @cached_property
    def resources(self) -> List[str]:
        """URLs absolues référencées par un attribut href/src, dans l'ordre du document."""
        return [
            resolve_resource(self.url_parts, match.group(2))
            for match in SRC_HREF_RE.finditer(self.body)
        ]

    @cached_property
    def _groups(self) -> List[HostGroup]:
        return group_by_host(self.resources)

    def resources_by_host(self) -> List[HostGroup]:
        return list(self._groups)

    def static_assets_by_host(self) -> List[HostGroup]:
        return filter_static_assets(self._groups)
