# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from aws_health_exporter.scraper.events import (
    ACCOUNT_EVENT_LABELS,
    ORGANIZATION_EVENT_LABELS,
    AccountEvent,
    EventScope,
    OrganizationEvent,
)
from tests.test_utils.health_responses import health_event


def test_account_event_from_describe_response() -> None:
    event = AccountEvent.from_describe_response(health_event())

    assert event == AccountEvent(
        availability_zone="eu-west-3a",
        region="eu-west-3",
        service="EC2",
        event_type_category="issue",
        event_type_code="AWS_EC2_OPERATIONAL_ISSUE",
        status_code="open",
    )
    assert event.label_values() == (
        "eu-west-3a",
        "eu-west-3",
        "EC2",
        "issue",
        "AWS_EC2_OPERATIONAL_ISSUE",
        "open",
    )


def test_organization_event_has_no_availability_zone() -> None:
    event = OrganizationEvent.from_describe_response(health_event())

    assert not hasattr(event, "availability_zone")
    assert event.label_values() == (
        "eu-west-3",
        "EC2",
        "issue",
        "AWS_EC2_OPERATIONAL_ISSUE",
        "open",
    )


def test_missing_fields_become_empty_labels() -> None:
    assert AccountEvent().label_values() == ("",) * len(ACCOUNT_EVENT_LABELS)
    assert OrganizationEvent().label_values() == ("",) * len(
        ORGANIZATION_EVENT_LABELS
    )

    event = AccountEvent.from_describe_response(
        health_event(service=None, availabilityZone=None)
    )
    assert event.label_values() == (
        "",
        "eu-west-3",
        "",
        "issue",
        "AWS_EC2_OPERATIONAL_ISSUE",
        "open",
    )


def test_label_values_match_label_names() -> None:
    for scope in EventScope:
        assert len(scope.parse_event({}).label_values()) == len(scope.label_names)


def test_scope_labels() -> None:
    assert EventScope.ACCOUNT.label_names == (
        "availability_zone",
        "region",
        "service",
        "event_type_category",
        "event_type_code",
        "status_code",
    )
    assert EventScope.ORGANIZATION.label_names == (
        "region",
        "service",
        "event_type_category",
        "event_type_code",
        "status_code",
    )


def test_scope_parses_its_own_event_type() -> None:
    assert type(EventScope.ACCOUNT.parse_event(health_event())) is AccountEvent
    assert (
        type(EventScope.ORGANIZATION.parse_event(health_event())) is OrganizationEvent
    )
