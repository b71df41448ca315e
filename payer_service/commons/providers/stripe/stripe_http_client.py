import time
from urllib.parse import urlparse
from typing import Optional

import requests
import stripe
from requests.adapters import HTTPAdapter
from stripe import HTTPClient, RequestsClient

from payer_service.commons.context.logger import get_logger

log = get_logger("stripe_http_client")


def set_default_http_client(http_client: Optional[HTTPClient]):
    # note: these are threadsafe, so we can set it up
    # prior to spawning the threadpool
    stripe.default_http_client = http_client


class TimedSession(requests.Session):
    # log latency of every stripe request
    def request(self, method, url, *args, **kwargs):
        start = time.perf_counter()
        status_code = None
        try:
            response = super().request(method, url, *args, **kwargs)
            status_code = response.status_code
            return response
        finally:
            log.debug(
                "[stripe_request] completed.",
                method=method,
                path=urlparse(url).path,
                status_code=status_code,
                latency_ms=round((time.perf_counter() - start) * 1000, 2),
            )


class TimedRequestsClient(RequestsClient):

    # See https://urllib3.readthedocs.io/en/latest/advanced-usage.html#customizing-pool-behavior
    # to understand urllib3 connection pooling mechanism
    _max_connection_pool_size: int = 10

    def __init__(
        self,
        timeout=80,  # super class default value
        session=None,
        max_connection_pool_size: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(timeout=timeout, session=session, **kwargs)
        self._max_connection_pool_size = (
            max_connection_pool_size or self._max_connection_pool_size
        )

    def request(self, method, url, headers, post_data=None):
        if not self._session:
            self._session = TimedSession()
            self._session.mount(
                "https://", HTTPAdapter(pool_maxsize=self._max_connection_pool_size)
            )
            self._session.mount(
                "http://", HTTPAdapter(pool_maxsize=self._max_connection_pool_size)
            )

        return super().request(method, url, headers, post_data=post_data)
