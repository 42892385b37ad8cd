import json
import re

import pytest

from pagespy.core.data_loader import load_cdn_signatures
from pagespy.core.signatures import CDN_SIGNATURES, CDNSignature, match_cdn_hostname


@pytest.mark.parametrize(
    "hostname,expected",
    [
        ("foobar.turbobytes.com", "Turbobytes"),
        ("e1234.a.akamaiedge.net", "Akamai"),
        ("a1.EDGESUITE.NET", "Akamai"),
        ("d111111abcdef8.cloudfront.net", "CloudFront"),
        ("global-ssl.fastly.net.example", "Fastly"),
        ("xyz.netdna-cdn.com", "NetDNA"),
        ("foo.com", None),
        ("akamai.disqus.com", None),
        ("", None),
    ],
)
def test_match_cdn_hostname(hostname, expected):
    assert match_cdn_hostname(hostname) == expected


def test_cachefly_pattern_is_case_sensitive():
    assert match_cdn_hostname("foo.cachefly.net") == "CacheFly"
    assert match_cdn_hostname("foo.CACHEFLY.net") is None


def test_table_order_breaks_ties():
    first = CDNSignature(name="First", patterns=(re.compile(r"shared\.net$"),))
    second = CDNSignature(name="Second", patterns=(re.compile(r"\.net$"),))

    assert match_cdn_hostname("x.shared.net", (first, second)) == "First"
    assert match_cdn_hostname("x.shared.net", (second, first)) == "Second"
    # Pur : même entrée, même sortie
    assert match_cdn_hostname("x.shared.net", (first, second)) == "First"


def test_builtin_table_is_immutable():
    with pytest.raises(AttributeError):
        CDN_SIGNATURES[0].name = "Mutated"  # type: ignore[misc]
    assert isinstance(CDN_SIGNATURES, tuple)


def test_loader_missing_file_uses_builtin(tmp_path):
    assert load_cdn_signatures(tmp_path / "absent.json") is CDN_SIGNATURES


def test_loader_reads_ordered_table(tmp_path):
    path = tmp_path / "cdn_signatures.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Custom", "patterns": [r"mycdn\.io$"], "ignore_case": True},
                {"name": "  ", "patterns": [r"x"]},
                {"name": "Broken", "patterns": ["(unclosed"]},
                {"name": "Empty", "patterns": []},
                "not-a-dict",
                {"name": "Strict", "patterns": [r"strict\.net$"], "ignore_case": False},
            ]
        ),
        encoding="utf-8",
    )

    table = load_cdn_signatures(path)

    assert [s.name for s in table] == ["Custom", "Strict"]
    assert match_cdn_hostname("A.MYCDN.IO", table) == "Custom"
    assert match_cdn_hostname("a.STRICT.net", table) is None
    assert match_cdn_hostname("a.strict.net", table) == "Strict"


def test_loader_invalid_json_uses_builtin(tmp_path):
    path = tmp_path / "cdn_signatures.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_cdn_signatures(path) is CDN_SIGNATURES

    path.write_text(json.dumps({"name": "x"}), encoding="utf-8")
    assert load_cdn_signatures(path) is CDN_SIGNATURES
