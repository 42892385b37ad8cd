import asyncio
from typing import Dict, List, Optional
from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from pagespy.core.errors import DNSLookupFailure
from pagespy.scanner.dns import DnspythonResolver, resolve_cnames


class FakeResolver:
    def __init__(self, table: Dict[str, List[str]], delays: Optional[Dict[str, float]] = None):
        self.table = table
        self.delays = delays or {}
        self.queries: List[str] = []

    async def resolve_cname(self, hostname: str) -> List[str]:
        self.queries.append(hostname)
        await asyncio.sleep(self.delays.get(hostname, 0))
        if hostname not in self.table:
            raise DNSLookupFailure(hostname, "ENODATA")
        return self.table[hostname]


@pytest.mark.asyncio
async def test_failure_is_isolated_per_host():
    resolver = FakeResolver({"ok.foo.com": ["x.turbobytes.com"]})

    res = await resolve_cnames(["broken.foo.com", "ok.foo.com"], resolver)

    assert res.cnames == {"broken.foo.com": [], "ok.foo.com": ["x.turbobytes.com"]}
    assert "broken.foo.com" in res.failures
    assert "ok.foo.com" not in res.failures


@pytest.mark.asyncio
async def test_results_keep_query_order():
    # Le premier host répond en dernier
    resolver = FakeResolver(
        {"a.com": ["a.cdn.net"], "b.com": ["b.cdn.net"]}, delays={"a.com": 0.05}
    )
    res = await resolve_cnames(["a.com", "b.com"], resolver, asyncio.Semaphore(2))
    assert list(res.cnames) == ["a.com", "b.com"]


@pytest.mark.asyncio
async def test_lookups_run_concurrently():
    resolver = FakeResolver(
        {h: [] for h in ("a.com", "b.com", "c.com")},
        delays={"a.com": 0.2, "b.com": 0.2, "c.com": 0.2},
    )
    loop = asyncio.get_running_loop()
    t0 = loop.time()
    await resolve_cnames(["a.com", "b.com", "c.com"], resolver)
    assert loop.time() - t0 < 0.5


@pytest.mark.asyncio
async def test_unexpected_resolver_error_is_absorbed():
    class Exploding:
        async def resolve_cname(self, hostname):
            raise RuntimeError("boom")

    res = await resolve_cnames(["a.com"], Exploding())
    assert res.cnames == {"a.com": []}
    assert res.failures == {"a.com": "boom"}


@pytest.mark.asyncio
async def test_empty_input_issues_no_lookup():
    resolver = FakeResolver({})
    res = await resolve_cnames([], resolver)
    assert res.cnames == {}
    assert resolver.queries == []


@pytest.mark.asyncio
async def test_dnspython_resolver_strips_trailing_dot():
    record = MagicMock()
    record.to_text.return_value = "foobar.turbobytes.com."

    with patch("dns.resolver.Resolver") as mock_cls:
        mock_cls.return_value.resolve.return_value = [record]
        cnames = await DnspythonResolver(timeout=1.0).resolve_cname("c.foo.com")

    assert cnames == ["foobar.turbobytes.com"]
    mock_cls.return_value.resolve.assert_called_once_with("c.foo.com", "CNAME")


@pytest.mark.asyncio
async def test_dnspython_resolver_wraps_dns_errors():
    with patch("dns.resolver.Resolver") as mock_cls:
        mock_cls.return_value.resolve.side_effect = dns.resolver.NoAnswer()
        with pytest.raises(DNSLookupFailure) as exc:
            await DnspythonResolver().resolve_cname("foo.com")

    assert exc.value.hostname == "foo.com"
    assert exc.value.reason == "NoAnswer"
    assert exc.value.no_data is True


@pytest.mark.asyncio
async def test_dnspython_resolver_timeout_is_a_real_failure():
    with patch("dns.resolver.Resolver") as mock_cls:
        mock_cls.return_value.resolve.side_effect = dns.exception.Timeout()
        with pytest.raises(DNSLookupFailure) as exc:
            await DnspythonResolver().resolve_cname("foo.com")

    assert exc.value.reason == "Timeout"
    assert exc.value.no_data is False


@pytest.mark.asyncio
async def test_missing_cname_is_not_reported_as_failure():
    class NoData:
        async def resolve_cname(self, hostname):
            if hostname == "plain.foo.com":
                raise DNSLookupFailure(hostname, "NoAnswer", no_data=True)
            return ["x.fastly.net"]

    res = await resolve_cnames(["plain.foo.com", "cdn.foo.com"], NoData())

    assert res.cnames == {"plain.foo.com": [], "cdn.foo.com": ["x.fastly.net"]}
    assert res.failures == {}
