from __future__ import annotations

import posixpath
import re
from urllib.parse import SplitResult, urlsplit, urlunsplit

from pagespy.core.errors import InvalidProtocol

# Schéma explicite : lettres/chiffres suivis de "://"
URL_PROTOCOL_RE = re.compile(r"^([a-z0-9]+)://", re.IGNORECASE)

ALLOWED_SCHEMES = ("http", "https")


def has_explicit_scheme(value: str) -> bool:
    return URL_PROTOCOL_RE.match(value) is not None


def normalize_url(input_url: str) -> str:
    """
    Préfixe http:// si aucun schéma, sinon valide http/https.
    Lève InvalidProtocol avant toute requête.
    """
    u = input_url.strip()
    if not u:
        raise ValueError("empty url")

    m = URL_PROTOCOL_RE.match(u)
    if m is None:
        return "http://" + u

    protocol = m.group(1).lower()
    if protocol not in ALLOWED_SCHEMES:
        raise InvalidProtocol(protocol, url=u)
    return u


def _split_query_fragment(value: str) -> tuple[str, str, str]:
    path, _, fragment = value.partition("#")
    path, _, query = path.partition("?")
    return path, query, fragment


def build_url(base: SplitResult, path: str) -> str:
    """
    Reconstruit une URL absolue à partir des composants de la page.
    Le query/fragment embarqué dans `path` remplace celui de la page.
    """
    pathname, query, fragment = _split_query_fragment(path)
    return urlunsplit((base.scheme, base.netloc, pathname, query, fragment))


def resolve_path(base_path: str, value: str) -> str:
    """Résolution type "chemin de fichier" : le segment final de la base est un répertoire."""
    resolved = posixpath.normpath(posixpath.join(base_path or "/", value))
    # normpath conserve un "//" initial (POSIX), pas une URL
    return "/" + resolved.lstrip("/")


def resolve_resource(base: SplitResult, value: str) -> str:
    """Rend absolue une référence extraite d'un attribut href/src."""
    if value.startswith("//"):
        return f"{base.scheme}:{value}"
    if has_explicit_scheme(value):
        return value

    pathname, query, fragment = _split_query_fragment(value)
    resolved = resolve_path(base.path, pathname)
    if query:
        resolved += "?" + query
    if fragment:
        resolved += "#" + fragment
    return build_url(base, resolved)


def hostname_of(url: str) -> str:
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        # ex: port non numérique, crochets IPv6 invalides
        return ""
