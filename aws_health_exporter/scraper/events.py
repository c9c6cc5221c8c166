# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""
AWS Health events as they are turned into metrics.

The account-scoped and the organization-scoped APIs describe events with almost the
same shape. Both models expose `label_values()`, one string per label name of their
scope in the same order, so the rest of the scraper never needs to know which one it
is looking at. Fields missing from the service response become empty labels.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Optional, Protocol

ACCOUNT_EVENT_LABELS: Final = (
    "availability_zone",
    "region",
    "service",
    "event_type_category",
    "event_type_code",
    "status_code",
)

ORGANIZATION_EVENT_LABELS: Final = ACCOUNT_EVENT_LABELS[1:]


class HealthEvent(Protocol):
    def label_values(self) -> tuple[str, ...]: ...


def _label(value: Optional[str]) -> str:
    return value if value is not None else ""


@dataclass(frozen=True)
class OrganizationEvent:
    region: Optional[str] = None
    service: Optional[str] = None
    event_type_category: Optional[str] = None
    event_type_code: Optional[str] = None
    status_code: Optional[str] = None

    def label_values(self) -> tuple[str, ...]:
        return (
            _label(self.region),
            _label(self.service),
            _label(self.event_type_category),
            _label(self.event_type_code),
            _label(self.status_code),
        )

    @classmethod
    def from_describe_response(cls, event: Mapping[str, Any]) -> "OrganizationEvent":
        return OrganizationEvent(
            region=event.get("region"),
            service=event.get("service"),
            event_type_category=event.get("eventTypeCategory"),
            event_type_code=event.get("eventTypeCode"),
            status_code=event.get("statusCode"),
        )


@dataclass(frozen=True)
class AccountEvent(OrganizationEvent):
    availability_zone: Optional[str] = None

    def label_values(self) -> tuple[str, ...]:
        return (_label(self.availability_zone),) + super().label_values()

    @classmethod
    def from_describe_response(cls, event: Mapping[str, Any]) -> "AccountEvent":
        return AccountEvent(
            availability_zone=event.get("availabilityZone"),
            region=event.get("region"),
            service=event.get("service"),
            event_type_category=event.get("eventTypeCategory"),
            event_type_code=event.get("eventTypeCode"),
            status_code=event.get("statusCode"),
        )


class EventScope(str, Enum):
    """which of the two Health APIs events are read from"""

    ACCOUNT = "account"
    ORGANIZATION = "organization"

    @property
    def label_names(self) -> tuple[str, ...]:
        if self is EventScope.ORGANIZATION:
            return ORGANIZATION_EVENT_LABELS
        return ACCOUNT_EVENT_LABELS

    def parse_event(self, event: Mapping[str, Any]) -> HealthEvent:
        if self is EventScope.ORGANIZATION:
            return OrganizationEvent.from_describe_response(event)
        return AccountEvent.from_describe_response(event)
