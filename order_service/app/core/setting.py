"""
Order Service configuration.

Every setting is optional at load time; the repository factory decides which
ones are required for the selected backend and reports the missing ones.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the order service directory path
ORDER_SERVICE_DIR = Path(__file__).parent.parent.parent
ENV_FILE = ORDER_SERVICE_DIR / ".env"

# Valid database API types
AZURE_COSMOS_DB_SQL_API = "cosmosdbsql"


class OrderServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    APP_NAME: str = "order-service"
    APP_VERSION: str = ""
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3001

    # Database backend selection
    ORDER_DB_API: str = ""

    # Common database settings
    ORDER_DB_URI: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_COSMOS_RESOURCEENDPOINT", "ORDER_DB_URI"),
    )
    ORDER_DB_NAME: Optional[str] = None
    ORDER_DB_PASSWORD: Optional[str] = None

    # MongoDB API
    ORDER_DB_COLLECTION_NAME: Optional[str] = None
    ORDER_DB_USERNAME: Optional[str] = None

    # Cosmos DB SQL API
    ORDER_DB_CONTAINER_NAME: Optional[str] = None
    ORDER_DB_PARTITION_KEY: Optional[str] = None
    ORDER_DB_PARTITION_VALUE: Optional[str] = None
    USE_WORKLOAD_IDENTITY_AUTH: bool = False

    # Order queue (Kafka)
    ORDER_QUEUE_BOOTSTRAP_SERVERS: str = Field(
        default="localhost:9092",
        validation_alias=AliasChoices(
            "ORDER_QUEUE_BOOTSTRAP_SERVERS", "KAFKA_BOOTSTRAP_SERVERS"
        ),
    )
    ORDER_QUEUE_TOPIC: str = "orders"
    ORDER_QUEUE_GROUP_ID: str = "order-service"
    ORDER_QUEUE_MAX_MESSAGES: int = 100
    ORDER_QUEUE_RECEIVE_TIMEOUT_MS: int = 1000

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_CREDENTIALS: bool = False
    CORS_METHODS: List[str] = ["*"]
    CORS_HEADERS: List[str] = ["*"]

    @property
    def uses_cosmos_sql_api(self) -> bool:
        return self.ORDER_DB_API == AZURE_COSMOS_DB_SQL_API


# Create a singleton instance
_settings_instance = None


def get_settings() -> OrderServiceSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = OrderServiceSettings()
    return _settings_instance
