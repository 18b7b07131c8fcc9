"""
Ticker Feed - Integration Tests for Adapters over Real HTTP
Each test serves canned upstream responses from a local aiohttp server.
"""
import asyncio
import contextlib
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from structlog.testing import capture_logs

from ticker_feed.config.settings import DataSourceSettings
from ticker_feed.data.adapters.crypto_adapter import CoinGeckoAdapter
from ticker_feed.data.adapters.stooq_adapter import StooqDailyAdapter
from ticker_feed.data.adapters.yahoo_adapter import YahooQuoteAdapter
from ticker_feed.errors import SourceError


BAD_UTF8_CSV = b"Date,Open,High,Low,Close,Volume\r\n2026-10-01,1,1,1,\xff\xfe,1000\r\n"


@contextlib.asynccontextmanager
async def serve(routes):
    """Start a local server for {path: handler} and yield its base URL."""
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    async with TestServer(app) as server:
        yield f"http://{server.host}:{server.port}"


def stooq_handler(bodies, hits=None):
    """Answer /q/d/l/ per symbol: an int is a status, "slow" stalls, bytes are sent raw."""

    async def handler(request):
        symbol = request.query["s"]
        if hits is not None:
            hits.append((symbol, request.headers.get("User-Agent")))
        body = bodies[symbol]
        if isinstance(body, int):
            return web.Response(status=body, text="Service Unavailable")
        if body == "slow":
            await asyncio.sleep(1.0)
            return web.Response(text="", content_type="text/csv")
        if isinstance(body, str):
            body = body.encode("utf-8")
        return web.Response(body=body, content_type="text/csv", charset="utf-8")

    return handler


def _settings(primary, alternate=None, **overrides):
    values = dict(
        stooq_base_url=primary,
        stooq_alternate_url=alternate or primary,
        coingecko_base_url=f"{primary}/api/v3",
        yahoo_base_url=primary,
        yahoo_alternate_url=alternate or primary,
        request_timeout_seconds=2.0,
        max_concurrency=3,
        user_agent="ticker-feed-test/1.0",
    )
    values.update(overrides)
    return DataSourceSettings(**values)


# ─── Stooq ──────────────────────────────────────────────────────

class TestStooqOverHttp:
    @pytest.mark.asyncio
    async def test_undecodable_body_drops_only_that_symbol(self, instruments, make_stooq_csv):
        hits = []
        bodies = {"^spx": make_stooq_csv(100, 110), "^dax": BAD_UTF8_CSV, "gc.f": make_stooq_csv(2000, 2010)}

        async with serve({"/q/d/l/": stooq_handler(bodies, hits)}) as base:
            adapter = StooqDailyAdapter(instruments, _settings(base))
            with capture_logs() as logs:
                quotes = await adapter.run()

        assert [q.symbol for q in quotes] == ["^spx", "gc.f"]
        assert adapter._session is None
        # primary, then the alternate host
        assert [s for s, _ in hits].count("^dax") == 2
        skipped = [e for e in logs if e["event"] == "instrument_skipped"]
        assert [e["symbol"] for e in skipped] == ["^dax"]
        assert "undecodable body" in skipped[0]["reason"]

    @pytest.mark.asyncio
    async def test_server_error_falls_back_to_alternate_host(self, instruments, make_stooq_csv):
        down = {"^spx": 503, "^dax": 503, "gc.f": 503}
        up = {"^spx": make_stooq_csv(100, 110), "^dax": make_stooq_csv(50, 45), "gc.f": make_stooq_csv(2000, 2000)}

        async with serve({"/q/d/l/": stooq_handler(down)}) as primary, \
                serve({"/q/d/l/": stooq_handler(up)}) as alternate:
            adapter = StooqDailyAdapter(instruments, _settings(primary, alternate))
            with capture_logs() as logs:
                quotes = await adapter.run()

        assert [q.symbol for q in quotes] == ["^spx", "^dax", "gc.f"]
        failed = [e for e in logs if e["event"] == "source_attempt_failed"]
        assert len(failed) == 3
        assert all("HTTP 503" in e["error"] for e in failed)

    @pytest.mark.asyncio
    async def test_timeout_drops_only_that_symbol(self, instruments, make_stooq_csv):
        bodies = {"^spx": make_stooq_csv(100, 110), "^dax": "slow", "gc.f": make_stooq_csv(2000, 2010)}

        async with serve({"/q/d/l/": stooq_handler(bodies)}) as base:
            adapter = StooqDailyAdapter(instruments, _settings(base, request_timeout_seconds=0.2))
            quotes = await adapter.run()

        assert [q.symbol for q in quotes] == ["^spx", "gc.f"]
        assert adapter._session is None

    @pytest.mark.asyncio
    async def test_requests_carry_user_agent_and_params(self, instruments, make_stooq_csv):
        hits = []
        bodies = {s: make_stooq_csv(1, 2) for s in instruments.stooq_symbols}

        async with serve({"/q/d/l/": stooq_handler(bodies, hits)}) as base:
            await StooqDailyAdapter(instruments, _settings(base)).run()

        assert sorted(s for s, _ in hits) == sorted(instruments.stooq_symbols)
        assert {ua for _, ua in hits} == {"ticker-feed-test/1.0"}


# ─── CoinGecko ──────────────────────────────────────────────────

class TestCoinGeckoOverHttp:
    @pytest.mark.asyncio
    async def test_batch_request(self, instruments):
        seen = {}

        async def handler(request):
            seen.update(request.query)
            return web.json_response({
                "bitcoin": {"usd": 60000, "usd_24h_change": 2.0},
                "ethereum": {"usd": 3000, "usd_24h_change": -1.5},
            })

        async with serve({"/api/v3/simple/price": handler}) as base:
            adapter = CoinGeckoAdapter(instruments, _settings(base))
            quotes = await adapter.run()

        assert [q.symbol for q in quotes] == ["BTC", "ETH"]
        assert seen["ids"] == "bitcoin,ethereum"
        assert seen["vs_currencies"] == "usd"
        assert adapter._session is None

    @pytest.mark.asyncio
    async def test_non_2xx_is_source_error(self, instruments):
        async def handler(request):
            return web.Response(status=429, text="rate limited")

        async with serve({"/api/v3/simple/price": handler}) as base:
            adapter = CoinGeckoAdapter(instruments, _settings(base))
            with pytest.raises(SourceError, match="HTTP 429"):
                await adapter.run()

        assert adapter._session is None

    @pytest.mark.asyncio
    async def test_malformed_json_is_source_error(self, instruments):
        async def handler(request):
            return web.Response(text='{"bitcoin": {"usd": 600', content_type="application/json")

        async with serve({"/api/v3/simple/price": handler}) as base:
            adapter = CoinGeckoAdapter(instruments, _settings(base))
            with pytest.raises(SourceError, match="malformed JSON"):
                await adapter.run()

        assert adapter._session is None


# ─── Yahoo ──────────────────────────────────────────────────────

class TestYahooOverHttp:
    @pytest.mark.asyncio
    async def test_per_symbol_fallback_isolates_bad_body(self, instruments):
        async def handler(request):
            symbols = request.query["symbols"]
            if "," in symbols:
                return web.Response(status=500)
            if symbols == "MSFT":
                body = b'{"quoteResponse": {"result": [{"symbol": "MSFT", "shortName": "\xff"}]}}'
                return web.Response(body=body, content_type="application/json")
            row = {
                "symbol": "AAPL",
                "regularMarketPrice": 200.0,
                "regularMarketPreviousClose": 190.0,
                "marketState": "REGULAR",
                "shortName": "Apple Inc.",
            }
            return web.Response(text=json.dumps({"quoteResponse": {"result": [row]}}), content_type="application/json")

        async with serve({"/v7/finance/quote": handler}) as base:
            adapter = YahooQuoteAdapter(instruments, _settings(base))
            quotes = await adapter.run()

        assert [q.symbol for q in quotes] == ["AAPL"]
        assert quotes[0].name == "Apple Inc."
        assert quotes[0].change == 10.0
        assert adapter._session is None
