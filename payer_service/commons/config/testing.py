import os

from payer_service.commons.config.app_config import AppConfig, CustomerSourceConfig
from payer_service.commons.config.secrets import Secret


def create_app_config() -> AppConfig:
    """
    Create AppConfig for testing environment
    """
    # allow redis endpoint (host:port) be overridden in docker compose
    redis_endpoint: str = os.getenv("REDIS_ENDPOINT", "localhost:6380")

    return AppConfig(
        ENVIRONMENT="testing",
        DEBUG=True,
        REMOTE_SECRET_ENABLED=False,
        STRIPE_US_SECRET_KEY=Secret(name="stripe_us_secret_key", value="sk_test_us"),
        STRIPE_CA_SECRET_KEY=Secret(name="stripe_ca_secret_key", value="sk_test_ca"),
        STRIPE_AU_SECRET_KEY=Secret(name="stripe_au_secret_key", value="sk_test_au"),
        REDIS_URL=f"redis://{redis_endpoint}/0",
        STRIPE_MAX_WORKERS=2,
        CUSTOMER_SOURCE_CONFIG=CustomerSourceConfig(
            creation_lock_timeout_sec=1, creation_lock_blocking_timeout_sec=1
        ),
    )
