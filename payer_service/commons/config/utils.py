import os
from typing import Callable, Mapping

from payer_service.commons.config.app_config import AppConfig
from payer_service.commons.config.local import create_app_config as LOCAL
from payer_service.commons.config.prod import create_app_config as PROD
from payer_service.commons.config.secrets import (
    SecretLoader,
    load_up_secret_aware_recursively,
)
from payer_service.commons.config.testing import create_app_config as TESTING

_CONFIG_MAP: Mapping[str, Callable[..., AppConfig]] = {
    "prod": PROD,
    "local": LOCAL,
    "testing": TESTING,
}


def init_app_config(
    config_map: Mapping[str, Callable[..., AppConfig]] = _CONFIG_MAP
) -> AppConfig:
    environment = os.getenv("ENVIRONMENT", None)
    assert environment is not None, (
        "ENVIRONMENT is not set through environment variable, "
        "valid ENVIRONMENT includes [prod, local, testing]"
    )

    config_key = environment.lower()
    assert (
        config_key in config_map
    ), f"Cannot find AppConfig specified by environment={config_key}"

    app_config = config_map[config_key]()

    secret_loader = None
    if app_config.REMOTE_SECRET_ENABLED:
        secret_loader = SecretLoader()

    load_up_secret_aware_recursively(
        secret_aware=app_config, secret_loader=secret_loader
    )

    return app_config
