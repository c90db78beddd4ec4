#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: requests are served concurrently on the asyncio event loop
(FastAPI + asyncpg connection pool + redis.asyncio). A single background
task per process runs the expiry sweep. With WORKERS > 1 uvicorn starts that
many processes from the app:server_app factory; each has its own pool and
sweeper, and concurrent sweeps delete the same rows at most once.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - PostgreSQL URL, or memory:// for an in-process store
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    RETENTION_DAYS - Age after which links are deleted (default 30)
    SWEEP_INTERVAL_SECONDS - Delay between expiry sweeps (default 60)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from config import Config, load_config
from shortlink.common.logging_config import setup_logging
from shortlink.database import RedisCache, create_store
from shortlink.identifier import IdentifierGenerator
from shortlink.service import MappingService
from shortlink.sweeper import ExpirySweeper
from web_app import create_app


def build_service(config: Config, logger) -> MappingService:
    """Wire store, cache and generator into a service (not yet connected)."""
    store = create_store(
        config.database_url,
        pool_min_size=config.db_pool_min_size,
        pool_max_size=config.db_pool_max_size,
        acquire_timeout_seconds=config.db_acquire_timeout_seconds,
        command_timeout_seconds=config.db_command_timeout_seconds,
        logger=logger,
    )

    cache = None
    if config.redis_url:
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )

    return MappingService(
        store=store,
        generator=IdentifierGenerator(length=config.identifier_length),
        cache=cache,
        logger=logger,
        max_create_attempts=config.max_create_attempts,
        created_by=config.created_by,
        retention=config.retention,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")

    service = build_service(config, logger)

    # Schema must be current before the first request is accepted
    if config.run_migrations:
        applied = await service.store.migrate()
        logger.info(f"Migrations applied: {applied or 'none'}")

    if service.cache:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        await service.cache.connect()
    else:
        logger.info("Redis caching disabled")

    sweeper = ExpirySweeper(
        store=service.store,
        retention=config.retention,
        interval_seconds=config.sweep_interval_seconds,
        logger=logger,
        cache=service.cache,
    )
    if config.sweep_enabled:
        sweeper.start()
    else:
        logger.info("Expiry sweep disabled")

    app.state.service = service
    app.state.sweeper = sweeper

    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down short link service...")
        await sweeper.stop()
        await service.close()
        logger.info("Service stopped")


def server_app(config: Optional[Config] = None) -> FastAPI:
    """Build the served application with logging and lifespan installed.

    Called once per process: directly for a single worker, and by uvicorn
    as an import-string factory in each worker process otherwise.
    """
    config = config or load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    app = create_app(service=None, sweeper=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    config = load_config()

    app = server_app(config)
    logger = app.state.logger

    logger.info("Short link service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    if config.workers > 1:
        # Worker processes need an import string; uvicorn supervises them and handles signals
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "app:server_app",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=False,
        )
        return

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
