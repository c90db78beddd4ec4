"""Tests that the server handles multiple concurrent connections correctly.

Requests are served on one event loop while the expiry sweeper runs in the
background. These tests assert that many simultaneous requests succeed and
return correct results.
"""

import asyncio

import pytest


@pytest.mark.asyncio
class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_health_requests(self, client):
        """Many concurrent GET /api/health requests all succeed."""
        concurrency = 50
        tasks = [client.get("/api/health") for _ in range(concurrency)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"
            assert r.json()["status"] in ("healthy", "unhealthy")

    async def test_concurrent_create_requests(self, client, store):
        """Many concurrent POST /create with different URLs; all succeed with unique identifiers."""
        concurrency = 30
        urls = [f"https://example.com/page_{i}" for i in range(concurrency)]
        tasks = [client.post("/create", json={"url": url}) for url in urls]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        identifiers = []
        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 201, f"Request {i}: status {r.status_code} body={r.text}"
            identifiers.append(r.json()["url"])

        assert len(identifiers) == len(set(identifiers)), "All identifiers must be unique under concurrency"
        assert len(store) == concurrency

        for identifier, url in zip(identifiers, urls):
            assert (await store.lookup_by_identifier(identifier)).target == url

    async def test_concurrent_mixed_read_after_write(self, client):
        """Create one short URL, then many concurrent reads (url info + health) all succeed."""
        create_resp = await client.post(
            "/api/shorten",
            json={"url": "https://example.com/concurrent-target"},
        )
        assert create_resp.status_code == 201
        identifier = create_resp.json()["identifier"]

        tasks = (
            [client.get(f"/api/urls/{identifier}") for _ in range(25)]
            + [client.get("/api/health") for _ in range(25)]
        )
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"
            if "urls" in str(r.request.url):
                data = r.json()
                assert data["identifier"] == identifier
                assert data["target"] == "https://example.com/concurrent-target"

    async def test_concurrent_redirect_requests(self, client):
        """Create one short URL, then many concurrent redirect (GET /{identifier}) requests all succeed."""
        create_resp = await client.post("/create", json={"url": "https://example.com/redirect-target"})
        assert create_resp.status_code == 201
        identifier = create_resp.json()["url"]

        tasks = [client.get(f"/{identifier}", follow_redirects=False) for _ in range(20)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 302, f"Request {i}: status {r.status_code}"
            assert r.headers.get("location") == "https://example.com/redirect-target"

    async def test_requests_while_sweeping(self, client, sweeper):
        """Requests keep being served while the sweeper runs every few milliseconds."""
        sweeper.interval_seconds = 0.001
        sweeper.start()
        try:
            tasks = [client.post("/create", json={"url": f"https://example.com/{i}"}) for i in range(20)]
            responses = await asyncio.gather(*tasks)
        finally:
            await sweeper.stop()

        assert all(r.status_code == 201 for r in responses)
        assert sweeper.last_run_at is not None
        # Fresh links are well inside the retention margin
        assert sweeper.last_deleted == 0
