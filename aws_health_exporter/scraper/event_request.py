# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Final, Optional

from aws_health_exporter.scraper.events import EventScope

EVENT_TYPE_CATEGORIES: Final = ("issue", "scheduledChange")
EVENT_LOCALE: Final = "en"


@dataclass(frozen=True)
class EventFilter:
    """
    Filter shared by both Health APIs. Leaving `regions` or `services` unset
    requests events for all of them.
    """

    regions: Optional[Sequence[str]] = None
    services: Optional[Sequence[str]] = None
    event_type_categories: Sequence[str] = EVENT_TYPE_CATEGORIES
    # only understood by the account-scoped API
    availability_zones: Optional[Sequence[str]] = None

    def to_request_filter(self, scope: EventScope) -> dict[str, list[str]]:
        request_filter: dict[str, list[str]] = {
            "eventTypeCategories": list(self.event_type_categories),
        }
        if self.regions is not None:
            request_filter["regions"] = list(self.regions)
        if self.services is not None:
            request_filter["services"] = list(self.services)
        if self.availability_zones is not None and scope is EventScope.ACCOUNT:
            request_filter["availabilityZones"] = list(self.availability_zones)
        return request_filter


@dataclass
class EventRequest:
    """
    One scrape cycle's worth of requests. `next_token` is advanced in place as pages
    are consumed.
    """

    filter: Optional[EventFilter] = None
    locale: str = EVENT_LOCALE
    max_results: Optional[int] = None
    next_token: Optional[str] = field(default=None, compare=False)

    def into_concrete_request(self, scope: EventScope) -> dict[str, Any]:
        """
        keyword arguments for `describe_events` or `describe_events_for_organization`

        Fields are copied as they are, except availability zones which the
        organization-scoped API has no notion of.
        """
        request: dict[str, Any] = {"locale": self.locale}
        if self.filter is not None:
            request["filter"] = self.filter.to_request_filter(scope)
        if self.max_results is not None:
            request["maxResults"] = self.max_results
        if self.next_token is not None:
            request["nextToken"] = self.next_token
        return request
