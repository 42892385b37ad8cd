import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Pattern, Tuple

from pagespy.core.config import CDN_SIGNATURES_FILE, DATA_DIR
from pagespy.core.signatures import CDN_SIGNATURES, CDNSignature

logger = logging.getLogger("pagespy.data_loader")


def _compile_patterns(name: str, raw_patterns: List[Any], flags: int) -> List[Pattern[str]]:
    compiled = []
    for raw in raw_patterns:
        if not isinstance(raw, str) or not raw.strip():
            logger.debug(f"Signature {name}: empty/invalid pattern skipped")
            continue
        try:
            compiled.append(re.compile(raw, flags))
        except re.error as e:
            logger.warning(f"Signature {name}: invalid regex {raw!r} skipped ({e})")
    return compiled


def load_cdn_signatures(path: Optional[Path] = None) -> Tuple[CDNSignature, ...]:
    """
    Charge la table de signatures CDN depuis un JSON (liste ordonnée).
    Format : [{"name": str, "patterns": [str, ...], "ignore_case": bool}, ...]
    Fichier absent ou invalide -> table intégrée.
    """
    path = path or DATA_DIR / CDN_SIGNATURES_FILE
    if not path.exists():
        logger.debug(f"File {path.name} not found, using built-in signatures.")
        return CDN_SIGNATURES

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in {path.name}")
        return CDN_SIGNATURES
    except OSError as e:
        logger.error(f"Error loading {path.name}: {str(e)}")
        return CDN_SIGNATURES

    if not isinstance(data, list):
        logger.error(f"Invalid format in {path.name}: expected list")
        return CDN_SIGNATURES

    signatures: List[CDNSignature] = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            continue

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.warning(f"Signature #{i} skipped: invalid 'name'")
            continue

        raw_patterns = entry.get("patterns")
        if not isinstance(raw_patterns, list) or not raw_patterns:
            logger.warning(f"Signature {name} skipped: no patterns")
            continue

        flags = re.IGNORECASE if entry.get("ignore_case", True) else 0
        patterns = _compile_patterns(name, raw_patterns, flags)
        if patterns:
            signatures.append(CDNSignature(name=name.strip(), patterns=tuple(patterns)))

    if not signatures:
        logger.error(f"No usable signature in {path.name}, using built-in signatures.")
        return CDN_SIGNATURES

    return tuple(signatures)
