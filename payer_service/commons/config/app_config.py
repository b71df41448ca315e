from dataclasses import dataclass

from typing_extensions import final

from payer_service.commons.config.secrets import Secret, SecretAware


@dataclass(frozen=True)
class CustomerSourceConfig:
    """
    Tunables of customer / payment source reconciliation.
    """

    # page size of legacy source and payment method listings
    source_list_page_size: int = 100
    # 0 keeps cached source listings until the next invalidation
    source_cache_ttl_sec: int = 0
    # advisory lock around remote customer creation of a local user
    creation_lock_timeout_sec: float = 10
    creation_lock_blocking_timeout_sec: float = 5

    def __post_init__(self):
        if self.source_list_page_size not in range(1, 101):
            raise ValueError(
                f"source_list_page_size should be within [1, 100] but found={self.source_list_page_size}"
            )
        if self.source_cache_ttl_sec < 0:
            raise ValueError(
                f"source_cache_ttl_sec should be >= 0 but found={self.source_cache_ttl_sec}"
            )
        if self.creation_lock_timeout_sec <= 0:
            raise ValueError(
                f"creation_lock_timeout_sec should be > 0 but found={self.creation_lock_timeout_sec}"
            )


@final
@dataclass(frozen=True)
class AppConfig(SecretAware):
    """
    A config class contains all necessary config key-values to bootstrap application.
    For local/testing/prod application environments, there are corresponding factories:
    - local: local.py::create_app_config
    - testing: testing.py::create_app_config
    - prod: prod.py::create_app_config
    """

    ENVIRONMENT: str
    DEBUG: bool
    REMOTE_SECRET_ENABLED: bool

    # Secret configs
    STRIPE_US_SECRET_KEY: Secret
    STRIPE_CA_SECRET_KEY: Secret
    STRIPE_AU_SECRET_KEY: Secret

    # Redis backing the source cache and the customer creation lock
    REDIS_URL: str

    # Stripe thread pool
    STRIPE_MAX_WORKERS: int = 10

    CUSTOMER_SOURCE_CONFIG: CustomerSourceConfig = CustomerSourceConfig()
