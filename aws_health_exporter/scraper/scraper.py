# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import time
from collections.abc import Callable, Sequence
from typing import Optional

from aws_health_exporter.observability.powertools_logging import powertools_logger
from aws_health_exporter.scraper.event_request import EventFilter, EventRequest
from aws_health_exporter.scraper.events import EventScope, OrganizationEvent
from aws_health_exporter.scraper.fetcher import PaginatedFetcher
from aws_health_exporter.scraper.health_api import HealthApi
from aws_health_exporter.scraper.metrics import (
    EventMetricFamily,
    GaugeFactory,
    unregistered_gauge,
)

logger = powertools_logger()


class Scraper:
    """
    Runs scrape cycles against the Health API selected by `scope`.

    A scraper can be shared by concurrent cycles: every cycle builds its own request and
    metric family, the only state they share lives in the credentials provider of `api`.
    """

    def __init__(
        self,
        api: HealthApi,
        *,
        regions: Optional[Sequence[str]] = None,
        services: Optional[Sequence[str]] = None,
        scope: EventScope = EventScope.ACCOUNT,
        gauge_factory: GaugeFactory = unregistered_gauge,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api = api
        self._regions = tuple(regions) if regions is not None else None
        self._services = tuple(services) if services is not None else None
        self._scope = scope
        self._gauge_factory = gauge_factory
        self._sleep = sleep

    @property
    def scope(self) -> EventScope:
        return self._scope

    def new_metric_family(self) -> EventMetricFamily:
        return EventMetricFamily(self._scope, self._gauge_factory)

    def describe_events(
        self, family: Optional[EventMetricFamily] = None
    ) -> EventMetricFamily:
        """
        Run one scrape cycle and return the metric family of the events found.

        Events are projected into `family` when one is given, so that the caller keeps
        the events read before a failure.
        """
        if family is None:
            family = self.new_metric_family()
        request = self._build_request()
        logger.debug(f"Describing {self._scope.value} events")
        PaginatedFetcher(self._api, self._scope, self._sleep).fetch(request, family)
        logger.debug(f"Described {self._scope.value} events")
        return family

    def get_organization_events(self) -> list[OrganizationEvent]:
        """all events of the organization matching the configured filter"""
        request = self._build_request()
        fetcher = PaginatedFetcher(self._api, EventScope.ORGANIZATION, self._sleep)
        return [
            event
            for event in fetcher.iter_events(request)
            if isinstance(event, OrganizationEvent)
        ]

    def _build_request(self) -> EventRequest:
        return EventRequest(
            filter=EventFilter(regions=self._regions, services=self._services)
        )
