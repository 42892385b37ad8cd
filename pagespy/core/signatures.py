from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Tuple

logger = logging.getLogger("pagespy.signatures")

@dataclass(frozen=True)
class CDNSignature:
    name: str
    patterns: Tuple[Pattern[str], ...]

    def matches(self, hostname: str) -> Optional[Pattern[str]]:
        for pattern in self.patterns:
            if pattern.search(hostname):
                return pattern
        return None

def _i(*sources: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(s, re.IGNORECASE) for s in sources)

# L'ordre est sémantique : premier CDN (puis premier pattern) qui matche gagne
CDN_SIGNATURES: Tuple[CDNSignature, ...] = (
    CDNSignature(
        name="Akamai",
        patterns=_i(
            r"(?:edge(?:suite|key)|akamai(?:edge|hd)?|srip)\.net$",
            r"akamaitechnologies\.com$",
            r"akadns\.net$",
        ),
    ),
    CDNSignature(name="Turbobytes", patterns=_i(r"turbobytes\.com$")),
    CDNSignature(name="Edgecast", patterns=_i(r"edgecastcdn\.net$")),
    CDNSignature(name="CloudFront", patterns=_i(r"cloudfront\.net$")),
    CDNSignature(name="CDNetworks", patterns=_i(r"cdngc\.net$")),
    # Sensible à la casse, non ancré : conservé tel quel
    CDNSignature(name="CacheFly", patterns=(re.compile(r"cachefly\."),)),
    CDNSignature(name="CloudFare", patterns=_i(r"cloudfare\.net$")),
    CDNSignature(name="CDN77", patterns=_i(r"cdn77\.net$")),
    CDNSignature(name="Fastly", patterns=_i(r"fastly\.net")),
    CDNSignature(name="Level3", patterns=_i(r"footprint\.net$")),
    CDNSignature(name="NetDNA", patterns=_i(r"netdna-(?:cdn|ssl)\.com$")),
    CDNSignature(name="BitGravity", patterns=_i(r"bitgravity\.com$")),
    CDNSignature(name="Internap", patterns=_i(r"internapcdn\.net$")),
    CDNSignature(name="CoralCDN", patterns=_i(r"nyud\.net$")),
)

def match_cdn_hostname(
    hostname: str, signatures: Iterable[CDNSignature] = CDN_SIGNATURES
) -> Optional[str]:
    """Renvoie le nom du premier CDN dont un pattern matche le hostname, sinon None."""
    if not hostname:
        return None

    for sig in signatures:
        pattern = sig.matches(hostname)
        if pattern is not None:
            logger.debug(
                "Hostname %s is %s based on pattern %s", hostname, sig.name, pattern.pattern
            )
            return sig.name
    return None
