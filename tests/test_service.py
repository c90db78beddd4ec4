"""Tests for service layer."""

import asyncio
from datetime import timedelta

import pytest

from conftest import FailingStore, ScriptedGenerator
from shortlink.database.memory import InMemoryMappingStore
from shortlink.errors import (
    CreateFailed,
    IdentifierCollisionError,
    InvalidTargetError,
    LinkNotFound,
    ResolveFailed,
    ResolveUnavailable,
)
from shortlink.identifier import URL_SAFE_ALPHABET
from shortlink.service import MappingService


class CountingStore(InMemoryMappingStore):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.insert_calls = 0

    async def insert(self, identifier, target, created_by):
        self.insert_calls += 1
        return await super().insert(identifier, target, created_by)


@pytest.mark.asyncio
class TestMappingService:
    """Test mapping service."""

    async def test_create_then_resolve(self, service, sample_urls):
        for url in sample_urls:
            mapping = await service.create(url)

            assert len(mapping.identifier) == 6
            assert all(c in URL_SAFE_ALPHABET for c in mapping.identifier)
            assert mapping.created_by == "user"
            assert mapping.created_at is not None
            assert await service.resolve(mapping.identifier) == url

    async def test_target_stored_verbatim(self, service):
        url = "not even a url, but non-empty " + "x" * 5000

        mapping = await service.create(url)

        assert await service.resolve(mapping.identifier) == url

    async def test_create_empty_rejected(self, service, store):
        with pytest.raises(InvalidTargetError, match="Invalid URL"):
            await service.create("")

        assert len(store) == 0

    @pytest.mark.parametrize("target", ["   ", "\n", " https://example.com "])
    async def test_whitespace_target_stored_verbatim(self, service, target):
        mapping = await service.create(target)

        assert mapping.target == target
        assert await service.resolve(mapping.identifier) == target

    async def test_validation_error_is_create_failure(self, service):
        with pytest.raises(CreateFailed):
            await service.create("")

    async def test_resolve_unknown(self, service):
        with pytest.raises(LinkNotFound) as exc_info:
            await service.resolve("doesnotexist")

        assert exc_info.value.identifier == "doesnotexist"

    @pytest.mark.parametrize("identifier", ["", "abc 12", "../etc", "abc%2F"])
    async def test_resolve_malformed_never_hits_store(self, logger, identifier):
        store = FailingStore(logger=logger)
        service = MappingService(store=store, logger=logger)

        with pytest.raises(LinkNotFound):
            await service.resolve(identifier)

        assert store.calls == 0

    async def test_collision_retries_with_fresh_identifier(self, logger):
        store = CountingStore(logger=logger)
        await store.insert("taken1", "https://first.example", "user")
        generator = ScriptedGenerator(["taken1", "taken1", "fresh1"])
        service = MappingService(store=store, generator=generator, logger=logger)

        mapping = await service.create("https://second.example")

        assert mapping.identifier == "fresh1"
        assert generator.issued == ["taken1", "taken1", "fresh1"]
        assert await service.resolve("taken1") == "https://first.example"
        assert await service.resolve("fresh1") == "https://second.example"

    async def test_collision_retries_are_bounded(self, logger):
        store = CountingStore(logger=logger)
        await store.insert("taken1", "https://first.example", "user")
        store.insert_calls = 0
        generator = ScriptedGenerator(["taken1"] * 10)
        service = MappingService(store=store, generator=generator, logger=logger, max_create_attempts=5)

        with pytest.raises(IdentifierCollisionError) as exc_info:
            await service.create("https://second.example")

        assert exc_info.value.attempts == 5
        assert store.insert_calls == 5
        assert len(generator.issued) == 5
        assert len(store) == 1

    async def test_storage_failure_is_not_retried(self, logger):
        store = FailingStore(logger=logger)
        service = MappingService(store=store, logger=logger, max_create_attempts=5)

        with pytest.raises(CreateFailed) as exc_info:
            await service.create("https://example.com")

        assert not isinstance(exc_info.value, InvalidTargetError)
        assert store.calls == 1

    async def test_resolve_storage_failure_is_distinguishable(self, logger):
        service = MappingService(store=FailingStore(logger=logger), logger=logger)

        with pytest.raises(ResolveUnavailable) as exc_info:
            await service.resolve("abc123")

        assert isinstance(exc_info.value, ResolveFailed)
        assert not isinstance(exc_info.value, LinkNotFound)

    async def test_concurrent_creates_with_same_candidate(self, logger):
        """Two creates that draw the same identifier never both get it."""
        store = InMemoryMappingStore(logger=logger)
        generator = ScriptedGenerator(["same11", "same11", "other1"])
        service = MappingService(store=store, generator=generator, logger=logger)

        first, second = await asyncio.gather(
            service.create("https://a.example"),
            service.create("https://b.example"),
        )

        assert {first.identifier, second.identifier} == {"same11", "other1"}
        assert await service.resolve(first.identifier) == "https://a.example"
        assert await service.resolve(second.identifier) == "https://b.example"

    async def test_parallel_creates_unique(self, service):
        urls = [f"https://example.com/page_{i}" for i in range(200)]

        mappings = await asyncio.gather(*[service.create(url) for url in urls])

        identifiers = [m.identifier for m in mappings]
        assert len(identifiers) == len(set(identifiers))
        for url, mapping in zip(urls, mappings):
            assert await service.resolve(mapping.identifier) == url

    async def test_get_mapping(self, service):
        created = await service.create("https://example.com")

        mapping = await service.get_mapping(created.identifier)

        assert mapping == created

    async def test_delete(self, service):
        mapping = await service.create("https://example.com")

        await service.delete(mapping.identifier)

        with pytest.raises(LinkNotFound):
            await service.resolve(mapping.identifier)
        with pytest.raises(LinkNotFound):
            await service.delete(mapping.identifier)

    async def test_delete_storage_failure(self, logger):
        service = MappingService(store=FailingStore(logger=logger), logger=logger)

        with pytest.raises(ResolveUnavailable):
            await service.delete("abc123")

    async def test_resolve_after_sweep(self, service, store):
        mapping = await service.create("https://example.com")

        deleted = await store.delete_older_than(mapping.created_at + timedelta(seconds=1))

        assert deleted == 1
        with pytest.raises(LinkNotFound):
            await service.resolve(mapping.identifier)

    async def test_created_by_is_configurable(self, store, logger):
        service = MappingService(store=store, logger=logger, created_by="tenant-a")

        mapping = await service.create("https://example.com")

        assert mapping.created_by == "tenant-a"

    async def test_rejects_zero_attempts(self, store):
        with pytest.raises(ValueError):
            MappingService(store=store, max_create_attempts=0)

    async def test_health_check(self, service):
        health = await service.health_check()

        assert health == {"database": True, "cache": True, "overall": True}

    async def test_health_check_unhealthy_store(self, logger):
        service = MappingService(store=FailingStore(logger=logger), logger=logger)

        health = await service.health_check()

        assert health["database"] is False
        assert health["overall"] is False
