"""
Backend selection for the order repository.

The settings object is assembled once at startup and passed in explicitly.
Missing settings are reported as a ``ConfigurationError`` before any client is
created; the caller decides that this is fatal.
"""

from typing import List, Optional

from ..core.exceptions import ConfigurationError
from ..core.setting import OrderServiceSettings, get_settings
from ..services.order_service import OrderService
from ..utils.logging import setup_order_logging as setup_logging
from .base import OrderRepository
from .cosmosdb import CosmosAuth, CosmosDBOrderRepository, PartitionKey
from .mongodb import MongoDBOrderRepository

logger = setup_logging(
    "order_service.repository.factory", log_level=get_settings().LOG_LEVEL
)

# Reported under the primary name; ORDER_DB_URI is accepted as fallback
URI_SETTING = "AZURE_COSMOS_RESOURCEENDPOINT"


def _require(settings: OrderServiceSettings, *names: str) -> List[str]:
    return [name for name in names if not getattr(settings, name)]


def _check_required(settings: OrderServiceSettings) -> None:
    missing: List[str] = []
    if not settings.ORDER_DB_URI:
        missing.append(URI_SETTING)
    missing += _require(settings, "ORDER_DB_NAME")

    if settings.uses_cosmos_sql_api:
        missing += _require(
            settings,
            "ORDER_DB_CONTAINER_NAME",
            "ORDER_DB_PARTITION_KEY",
            "ORDER_DB_PARTITION_VALUE",
        )
        if not settings.USE_WORKLOAD_IDENTITY_AUTH:
            missing += _require(settings, "ORDER_DB_PASSWORD")
    else:
        missing += _require(settings, "ORDER_DB_COLLECTION_NAME")

    if missing:
        logger.error(
            "Missing required database configuration",
            extra={
                "missing": missing,
                "api_type": settings.ORDER_DB_API or "mongodb",
            },
        )
        raise ConfigurationError(missing)


async def build_order_repository(
    settings: Optional[OrderServiceSettings] = None,
) -> OrderRepository:
    """Construct and connect the repository selected by ``ORDER_DB_API``.

    Raises:
        ConfigurationError: a setting required by the selected backend is missing
        RepositoryConnectionError: the backend could not be reached
    """
    settings = settings or get_settings()
    _check_required(settings)

    if settings.uses_cosmos_sql_api:
        auth = (
            CosmosAuth.WORKLOAD_IDENTITY
            if settings.USE_WORKLOAD_IDENTITY_AUTH
            else CosmosAuth.SHARED_KEY
        )
        logger.info("Using Azure CosmosDB SQL API", extra={"auth": auth.value})
        return await CosmosDBOrderRepository.connect(
            endpoint=settings.ORDER_DB_URI,
            db_name=settings.ORDER_DB_NAME,
            container_name=settings.ORDER_DB_CONTAINER_NAME,
            partition_key=PartitionKey(
                settings.ORDER_DB_PARTITION_KEY, settings.ORDER_DB_PARTITION_VALUE
            ),
            auth=auth,
            key=(
                None
                if auth is CosmosAuth.WORKLOAD_IDENTITY
                else settings.ORDER_DB_PASSWORD
            ),
        )

    logger.info("Using MongoDB API")
    return await MongoDBOrderRepository.connect(
        uri=settings.ORDER_DB_URI,
        db_name=settings.ORDER_DB_NAME,
        collection_name=settings.ORDER_DB_COLLECTION_NAME,
        username=settings.ORDER_DB_USERNAME,
        password=settings.ORDER_DB_PASSWORD,
    )


async def init_order_service(
    settings: Optional[OrderServiceSettings] = None,
) -> OrderService:
    """Build the repository for this deployment and wrap it in the service."""
    repository = await build_order_repository(settings)
    return OrderService(repository)
