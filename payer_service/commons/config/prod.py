import os

from payer_service.commons.config.app_config import AppConfig, CustomerSourceConfig
from payer_service.commons.config.secrets import Secret


def create_app_config() -> AppConfig:
    """
    Create AppConfig for prod environment
    """
    return AppConfig(
        ENVIRONMENT="prod",
        DEBUG=False,
        REMOTE_SECRET_ENABLED=True,
        # values are loaded by SecretLoader on app config initialization
        STRIPE_US_SECRET_KEY=Secret(name="stripe_us_secret_key"),
        STRIPE_CA_SECRET_KEY=Secret(name="stripe_ca_secret_key"),
        STRIPE_AU_SECRET_KEY=Secret(name="stripe_au_secret_key"),
        REDIS_URL=os.getenv("REDIS_URL", "redis://payer-service-redis:6379/0"),
        STRIPE_MAX_WORKERS=50,
        CUSTOMER_SOURCE_CONFIG=CustomerSourceConfig(
            source_cache_ttl_sec=int(os.getenv("SOURCE_CACHE_TTL_SEC", "0")),
            source_list_page_size=int(os.getenv("SOURCE_LIST_PAGE_SIZE", "100")),
            creation_lock_timeout_sec=float(
                os.getenv("CUSTOMER_CREATION_LOCK_TIMEOUT_SEC", "10")
            ),
        ),
    )
