import os
from dataclasses import dataclass
from typing import Any

import pytest

os.environ["ENVIRONMENT"] = "testing"

from payer_service.commons.config.app_config import AppConfig  # noqa: E402
from payer_service.commons.config.testing import create_app_config  # noqa: E402


@dataclass(frozen=True)
class StripeAPISettings:
    stripe: Any
    # see: https://github.com/stripe/stripe-python/blob/master/tests/conftest.py
    # for a list of settings to reset between tests
    api_base: str
    api_key: str
    default_http_client: Any
    verify_ssl_certs: bool

    @classmethod
    def init_from_stripe(cls, stripe):
        return cls(
            stripe=stripe,
            api_base=stripe.api_base,
            api_key=stripe.api_key,
            default_http_client=stripe.default_http_client,
            verify_ssl_certs=stripe.verify_ssl_certs,
        )

    def disable_outbound(self):
        self.stripe.api_base = "http://localhost"
        self.stripe.verify_ssl_certs = False

    def restore(self):
        self.stripe.api_base = self.api_base
        self.stripe.api_key = self.api_key
        self.stripe.default_http_client = self.default_http_client
        self.stripe.verify_ssl_certs = self.verify_ssl_certs


@pytest.fixture(autouse=True)
def stripe_api():
    """
    disallow stripe access from tests
    """
    import stripe

    api_settings = StripeAPISettings.init_from_stripe(stripe)
    # disable outbound access by pointing to localhost
    api_settings.disable_outbound()

    yield api_settings

    api_settings.restore()


@pytest.fixture
def app_config() -> AppConfig:
    return create_app_config()
