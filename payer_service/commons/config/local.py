import os

from payer_service.commons.config.app_config import AppConfig, CustomerSourceConfig
from payer_service.commons.config.secrets import Secret


def create_app_config() -> AppConfig:
    """
    Create AppConfig for local environment
    """
    # allow redis endpoint (host:port) be overridden in docker compose
    redis_endpoint: str = os.getenv("REDIS_ENDPOINT", "localhost:6379")

    return AppConfig(
        ENVIRONMENT="local",
        DEBUG=False,  # Set this to True for debugging
        REMOTE_SECRET_ENABLED=False,
        STRIPE_US_SECRET_KEY=Secret.from_env(
            name="stripe_us_secret_key",
            env="STRIPE_US_SECRET_KEY",
            default="sk_test_local",
        ),
        STRIPE_CA_SECRET_KEY=Secret.from_env(
            name="stripe_ca_secret_key",
            env="STRIPE_CA_SECRET_KEY",
            default="sk_test_local",
        ),
        STRIPE_AU_SECRET_KEY=Secret.from_env(
            name="stripe_au_secret_key",
            env="STRIPE_AU_SECRET_KEY",
            default="sk_test_local",
        ),
        REDIS_URL=f"redis://{redis_endpoint}/0",
        STRIPE_MAX_WORKERS=5,
        CUSTOMER_SOURCE_CONFIG=CustomerSourceConfig(source_cache_ttl_sec=60),
    )
