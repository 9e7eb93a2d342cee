"""Dependency injection with a process-wide service manager.

This module builds the shared resources (database engine, optional Redis
cache, log channels, click recorder) once at startup and exposes the core
components to FastAPI endpoints through ``Depends``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from shorturls.allocator import ShortcodeAllocator
from shorturls.cache import LinkCache, create_redis_client
from shorturls.clicks import ClickRecorder, RequestMetadata
from shorturls.config import Settings, get_settings
from shorturls.database import close_db, create_engine_from_url, create_session_factory, init_db
from shorturls.log_channels import LogChannels
from shorturls.resolver import RedirectResolver
from shorturls.stats import StatsAggregator
from shorturls.store import LinkStore


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Owns shared resources and the core components built on them.

    Created once per process (``_service_manager``); tests build their own
    instance against a throwaway database and override
    ``get_service_manager``.
    """

    def __init__(self) -> None:
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, settings: Settings | None = None) -> None:
        """Open log channels, connect the store and start the click worker."""
        if self._initialized:
            return

        self.settings = settings or get_settings()
        self.logs = LogChannels(log_dir=self.settings.LOG_DIR, level=self.settings.LOG_LEVEL)
        self.logs.open()

        self.engine: AsyncEngine = create_engine_from_url(self.settings.DATABASE_URL)
        await init_db(self.engine)
        self.store = LinkStore(create_session_factory(self.engine))

        self.cache: LinkCache | None = None
        if self.settings.REDIS_URL:
            self.cache = LinkCache(
                create_redis_client(self.settings.REDIS_URL),
                errors=self.logs.errors,
                ttl_seconds=self.settings.LINK_CACHE_TTL_SECONDS,
            )

        self.allocator = ShortcodeAllocator(
            self.store,
            code_length=self.settings.SHORT_CODE_LENGTH,
            max_attempts=self.settings.SHORT_CODE_MAX_ATTEMPTS,
            default_validity_minutes=self.settings.DEFAULT_VALIDITY_MINUTES,
            logger=self.logs.service,
        )
        self.resolver = RedirectResolver(self.store, cache=self.cache)
        self.stats = StatsAggregator(self.store, recent_limit=self.settings.STATS_RECENT_CLICKS_LIMIT)
        self.recorder = ClickRecorder(
            self.store,
            errors=self.logs.errors,
            queue_size=self.settings.CLICK_QUEUE_SIZE,
        )
        self.recorder.start()

        self._initialized = True
        self.logs.service.info(f"service started on {self.settings.BASE_URL}")

    async def cleanup(self) -> None:
        """Drain clicks, release connections and close log channels."""
        if not self._initialized:
            return

        await self.recorder.stop()
        if self.cache is not None:
            await self.cache.close()
        await close_db(self.engine)

        self.logs.service.info("service stopped")
        self.logs.close()
        self._initialized = False


# Global instance used by the application lifespan
_service_manager = ServiceManager()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view over the service manager.

    Attributes:
        service_manager: Shared resources and core components
        metadata: Headers and peer address used for click metadata
        request_id: Unique identifier for this request
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    metadata: RequestMetadata
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Service logger tagged with this request's id and client address."""
        return logging.LoggerAdapter(
            self.service_manager.logs.service,
            {
                "request_id": self.request_id,
                "client_ip": self.metadata.client_host,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager.initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    return RequestContext(
        service_manager=manager,
        metadata=RequestMetadata.from_request(request),
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
    )


def get_allocator(manager: ServiceManager = Depends(get_service_manager)) -> ShortcodeAllocator:
    return manager.allocator


def get_resolver(manager: ServiceManager = Depends(get_service_manager)) -> RedirectResolver:
    return manager.resolver


def get_recorder(manager: ServiceManager = Depends(get_service_manager)) -> ClickRecorder:
    return manager.recorder


def get_stats_aggregator(manager: ServiceManager = Depends(get_service_manager)) -> StatsAggregator:
    return manager.stats
