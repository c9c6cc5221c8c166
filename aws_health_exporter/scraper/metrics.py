# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Sequence
from typing import Final, Protocol

from prometheus_client import Gauge

from aws_health_exporter.scraper.errors import MetricRegistrationError
from aws_health_exporter.scraper.events import EventScope, HealthEvent

EVENTS_METRIC_NAME: Final = "aws_health_events"
EVENTS_METRIC_HELP: Final = "AWS Health events"


class GaugeFactory(Protocol):
    def __call__(
        self, name: str, documentation: str, labelnames: Sequence[str]
    ) -> Gauge: ...


def unregistered_gauge(
    name: str, documentation: str, labelnames: Sequence[str]
) -> Gauge:
    """a gauge owned by its caller, registering it somewhere is left to them"""
    return Gauge(name, documentation, labelnames=labelnames, registry=None)


class EventMetricFamily:
    """
    The `aws_health_events` gauge of a single scrape cycle, with one series set to 1 per
    distinct label set observed.
    """

    def __init__(
        self, scope: EventScope, gauge_factory: GaugeFactory = unregistered_gauge
    ) -> None:
        self._scope = scope
        self._label_names = scope.label_names
        self._gauge = gauge_factory(
            EVENTS_METRIC_NAME, EVENTS_METRIC_HELP, self._label_names
        )

    @property
    def scope(self) -> EventScope:
        return self._scope

    @property
    def label_names(self) -> tuple[str, ...]:
        return self._label_names

    @property
    def gauge(self) -> Gauge:
        return self._gauge

    def project(self, event: HealthEvent) -> dict[str, str]:
        values = event.label_values()
        try:
            self._gauge.labels(*values).set(1)
        except ValueError as err:
            raise MetricRegistrationError(
                f"Could not set {EVENTS_METRIC_NAME} for labels {values}: {err}"
            ) from err
        return dict(zip(self._label_names, values))

    def label_sets(self) -> list[dict[str, str]]:
        """label sets of all series in the family"""
        return [
            sample.labels
            for metric in self._gauge.collect()
            for sample in metric.samples
        ]
