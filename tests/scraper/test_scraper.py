# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from unittest.mock import MagicMock

from pytest import raises

from aws_health_exporter.scraper.errors import ProviderError, TooManyRetries
from aws_health_exporter.scraper.events import EventScope, OrganizationEvent
from aws_health_exporter.scraper.fetcher import MAX_RETRIES
from aws_health_exporter.scraper.health_api import HealthApi
from aws_health_exporter.scraper.metrics import EventMetricFamily
from aws_health_exporter.scraper.scraper import Scraper
from tests.test_utils.health_responses import (
    client_error,
    events_page,
    health_event,
    throttling_error,
)


def samples(family: EventMetricFamily) -> list[tuple[dict[str, str], float]]:
    return [
        (sample.labels, sample.value)
        for metric in family.gauge.collect()
        for sample in metric.samples
    ]


def test_account_events_over_two_pages(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events.side_effect = [
        events_page(
            health_event(
                region="eu-west-3",
                service=None,
                availabilityZone=None,
                eventTypeCategory=None,
                eventTypeCode=None,
                statusCode=None,
            ),
            next_token="token-2",
        ),
        events_page(),
    ]
    scraper = Scraper(health_api, regions=["eu-west-3"], sleep=sleep)

    family = scraper.describe_events()

    assert samples(family) == [
        (
            {
                "availability_zone": "",
                "region": "eu-west-3",
                "service": "",
                "event_type_category": "",
                "event_type_code": "",
                "status_code": "",
            },
            1.0,
        )
    ]
    assert health_client.describe_events.call_count == 2
    first_request = health_client.describe_events.call_args_list[0].kwargs
    assert first_request == {
        "locale": "en",
        "filter": {
            "eventTypeCategories": ["issue", "scheduledChange"],
            "regions": ["eu-west-3"],
        },
    }
    assert health_client.describe_events.call_args_list[1].kwargs["nextToken"] == (
        "token-2"
    )


def test_organization_event_missing_type_code(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events_for_organization.return_value = events_page(
        health_event(eventTypeCode=None)
    )
    scraper = Scraper(health_api, scope=EventScope.ORGANIZATION, sleep=sleep)

    family = scraper.describe_events()

    assert samples(family) == [
        (
            {
                "region": "eu-west-3",
                "service": "EC2",
                "event_type_category": "issue",
                "event_type_code": "",
                "status_code": "open",
            },
            1.0,
        )
    ]
    health_client.describe_events.assert_not_called()


def test_services_filter_is_passed(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    scraper = Scraper(
        health_api, regions=["global", "us-east-1"], services=["EC2", "S3"], sleep=sleep
    )

    scraper.describe_events()

    health_client.describe_events.assert_called_once_with(
        locale="en",
        filter={
            "eventTypeCategories": ["issue", "scheduledChange"],
            "regions": ["global", "us-east-1"],
            "services": ["EC2", "S3"],
        },
    )


def test_every_cycle_gets_a_fresh_family(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events.side_effect = [
        events_page(health_event(service="EC2")),
        events_page(health_event(service="RDS")),
    ]
    scraper = Scraper(health_api, sleep=sleep)

    first = scraper.describe_events()
    second = scraper.describe_events()

    assert first is not second
    assert [labels["service"] for labels in first.label_sets()] == ["EC2"]
    assert [labels["service"] for labels in second.label_sets()] == ["RDS"]


def test_failure_keeps_events_in_given_family(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events.side_effect = [
        events_page(health_event(), next_token="token-2"),
        *[throttling_error() for _ in range(MAX_RETRIES + 1)],
    ]
    scraper = Scraper(health_api, sleep=sleep)
    family = scraper.new_metric_family()

    with raises(TooManyRetries):
        scraper.describe_events(family)

    assert len(family.label_sets()) == 1


def test_provider_errors_propagate(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events.side_effect = client_error("AccessDenied")

    with raises(ProviderError):
        Scraper(health_api, sleep=sleep).describe_events()


def test_get_organization_events(
    health_api: HealthApi, health_client: MagicMock, sleep: MagicMock
) -> None:
    health_client.describe_events_for_organization.side_effect = [
        events_page(health_event(service="EC2"), next_token="token-2"),
        throttling_error("DescribeEventsForOrganization"),
        events_page(health_event(service="IAM", region="global")),
    ]
    scraper = Scraper(health_api, regions=["eu-west-3", "global"], sleep=sleep)

    events = scraper.get_organization_events()

    assert [(event.region, event.service) for event in events] == [
        ("eu-west-3", "EC2"),
        ("global", "IAM"),
    ]
    assert all(type(event) is OrganizationEvent for event in events)
    sleep.assert_called_once_with(0.1)
    health_client.describe_events.assert_not_called()
