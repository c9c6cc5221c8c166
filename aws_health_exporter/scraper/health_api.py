# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Protocol

from boto3 import Session

from aws_health_exporter.scraper.events import EventScope, HealthEvent
from aws_health_exporter.util import get_boto_config
from aws_health_exporter.util.regions import HEALTH_API_REGION
from aws_health_exporter.util.session_manager import CredentialSet

if TYPE_CHECKING:
    from mypy_boto3_health.client import HealthClient
else:
    HealthClient = object


class CredentialsProvider(Protocol):
    def get_credentials(self) -> CredentialSet: ...


@dataclass(frozen=True)
class EventPage:
    events: list[HealthEvent] = field(default_factory=list)
    next_token: Optional[str] = None


def health_client(session: Optional[Session] = None) -> HealthClient:
    """
    Health client for the single Health endpoint region

    Throttled calls are retried by the fetcher, botocore is limited to a single attempt.
    """
    aws_session = session if session is not None else Session()
    client: HealthClient = aws_session.client(
        "health",
        region_name=HEALTH_API_REGION,
        config=get_boto_config(total_max_attempts=1),
    )
    return client


class HealthApi:
    """
    Reads pages of events from either Health API.

    Without a credentials provider a single client using the default credential chain is
    shared by all callers. With one, a client is built per credential set and reused for
    as long as the provider keeps returning that set.
    """

    def __init__(
        self,
        credentials_provider: Optional[CredentialsProvider] = None,
        client: Optional[HealthClient] = None,
    ) -> None:
        self._credentials_provider = credentials_provider
        self._lock = threading.Lock()
        self._client = client
        self._client_credentials: Optional[CredentialSet] = None

    def describe_events_page(
        self, scope: EventScope, request: Mapping[str, Any]
    ) -> EventPage:
        client = self._current_client()
        if scope is EventScope.ORGANIZATION:
            response: Mapping[str, Any] = client.describe_events_for_organization(
                **request
            )
        else:
            response = client.describe_events(**request)
        return EventPage(
            events=[scope.parse_event(event) for event in response.get("events", [])],
            next_token=response.get("nextToken") or None,
        )

    def _current_client(self) -> HealthClient:
        if self._credentials_provider is None:
            with self._lock:
                if self._client is None:
                    self._client = health_client()
                return self._client

        credentials = self._credentials_provider.get_credentials()
        with self._lock:
            if self._client is None or credentials != self._client_credentials:
                self._client = health_client(
                    Session(
                        aws_access_key_id=credentials.access_key_id,
                        aws_secret_access_key=credentials.secret_access_key,
                        aws_session_token=credentials.session_token,
                        region_name=HEALTH_API_REGION,
                    )
                )
                self._client_credentials = credentials
            return self._client
