"""
Application Context

Everything with process-wide state (settings, gateway, session, telemetry and
the services built on them) is constructed once here and handed to whoever
needs it.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from supermall.catalog.categories import CategoryService
from supermall.catalog.offers import OfferService
from supermall.catalog.products import ProductService
from supermall.catalog.session import SessionContext
from supermall.catalog.shops import ShopService
from supermall.catalog.telemetry import Telemetry
from supermall.catalog.users import UserService
from supermall.config.settings import Settings, get_settings
from supermall.storage.gateway import PersistenceGateway, open_gateway
from supermall.timeutils import Clock, utcnow

logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """Wired application services"""
    settings: Settings
    gateway: PersistenceGateway
    session: SessionContext
    telemetry: Telemetry
    shops: ShopService
    products: ProductService
    offers: OfferService
    categories: CategoryService
    users: UserService

    async def close(self) -> None:
        await self.telemetry.flush()
        await self.gateway.close()
        logger.info("Application context closed")


def wire_context(
    settings: Settings,
    gateway: PersistenceGateway,
    session: Optional[SessionContext] = None,
    clock: Optional[Clock] = None,
) -> AppContext:
    """Build services around an already opened gateway"""
    clock = clock or utcnow
    session = session or SessionContext()
    telemetry = Telemetry(
        session,
        buffer_size=settings.monitoring.telemetry_buffer_size,
        clock=clock,
        gateway=gateway,
    )

    def build(service_cls):
        return service_cls(gateway, session, telemetry, clock=clock, settings=settings.catalog)

    return AppContext(
        settings=settings,
        gateway=gateway,
        session=session,
        telemetry=telemetry,
        shops=build(ShopService),
        products=build(ProductService),
        offers=build(OfferService),
        categories=build(CategoryService),
        users=UserService(gateway, session, telemetry, clock=clock),
    )


async def build_context(
    settings: Optional[Settings] = None,
    redis_client: Optional[Any] = None,
    clock: Optional[Clock] = None,
) -> AppContext:
    """
    Select the storage backend and wire the services.

    Args:
        settings: Application settings (cached settings when omitted)
        redis_client: Pre-built async Redis client to use for the remote store
        clock: Time source shared by gateway, telemetry and services

    Returns:
        AppContext: Ready to use context
    """
    settings = settings or get_settings()
    gateway = await open_gateway(settings, redis_client=redis_client, clock=clock)
    context = wire_context(settings, gateway, clock=clock)
    logger.info("Application context ready", backend=gateway.backend)
    return context
