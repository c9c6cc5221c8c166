# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import time
from collections.abc import Callable, Iterator
from typing import Final

from botocore.exceptions import BotoCoreError, ClientError

from aws_health_exporter.observability.powertools_logging import powertools_logger
from aws_health_exporter.scraper.errors import ProviderError, TooManyRetries
from aws_health_exporter.scraper.event_request import EventRequest
from aws_health_exporter.scraper.events import EventScope, HealthEvent
from aws_health_exporter.scraper.health_api import EventPage, HealthApi
from aws_health_exporter.scraper.metrics import EventMetricFamily

MAX_RETRIES: Final = 10
RETRY_BASE_DELAY_SECONDS: Final = 0.05

THROTTLING_ERROR_CODES: Final = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "TooManyRequestsException",
        "RequestLimitExceeded",
    }
)

logger = powertools_logger()


def is_throttling_error(err: ClientError) -> bool:
    if err.response.get("Error", {}).get("Code") in THROTTLING_ERROR_CODES:
        return True
    return err.response.get("ResponseMetadata", {}).get("HTTPStatusCode") == 429


def retry_delay(retry_count: int) -> float:
    return RETRY_BASE_DELAY_SECONDS * 2**retry_count


class PaginatedFetcher:
    """
    Walks the pages of one of the Health APIs.

    A throttled page request is issued again, with the same token, after an exponential
    backoff. Once `MAX_RETRIES` retries of one page have been throttled the fetch is
    abandoned with `TooManyRetries`. Events of pages read before that stay wherever
    they were streamed to. Every other error ends the fetch at once.
    """

    def __init__(
        self,
        api: HealthApi,
        scope: EventScope,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api = api
        self._scope = scope
        self._sleep = sleep

    @property
    def scope(self) -> EventScope:
        return self._scope

    def iter_events(self, request: EventRequest) -> Iterator[HealthEvent]:
        while True:
            page = self._fetch_page(request)
            yield from page.events
            request.next_token = page.next_token
            if request.next_token is None:
                return

    def fetch(
        self, request: EventRequest, family: EventMetricFamily
    ) -> EventMetricFamily:
        for event in self.iter_events(request):
            family.project(event)
        return family

    def _fetch_page(self, request: EventRequest) -> EventPage:
        retry_count = 0
        while True:
            logger.debug(
                f"Fetching {self._scope.value} events, token: {request.next_token}"
            )
            try:
                return self._api.describe_events_page(
                    self._scope, request.into_concrete_request(self._scope)
                )
            except ClientError as err:
                if not is_throttling_error(err):
                    raise ProviderError(
                        f"Error describing {self._scope.value} events: {err}"
                    ) from err
                retry_count += 1
                if retry_count > MAX_RETRIES:
                    raise TooManyRetries(
                        f"Still throttled after {MAX_RETRIES} retries describing {self._scope.value} events"
                    ) from err
                delay = retry_delay(retry_count)
                logger.debug(
                    f"Throttled describing {self._scope.value} events, retry {retry_count} in {delay}s"
                )
                self._sleep(delay)
            except BotoCoreError as err:
                raise ProviderError(
                    f"Error describing {self._scope.value} events: {err}"
                ) from err
