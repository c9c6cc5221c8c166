# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Iterator
from os import environ
from unittest.mock import MagicMock, patch

from moto import mock_aws
from pytest import fixture

from aws_health_exporter.scraper.health_api import HealthApi
from tests import DEFAULT_REGION


@fixture(autouse=True)
def aws_credentials() -> Iterator[None]:
    creds = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": DEFAULT_REGION,
        "USER_AGENT_EXTRA": "my-user-agent-extra",
    }
    with patch.dict(environ, creds, clear=True):
        yield


@fixture
def moto_backend() -> Iterator[None]:
    with mock_aws():
        yield


@fixture
def health_client() -> MagicMock:
    """stands in for the boto3 health client, the Health API is not covered by moto"""
    client = MagicMock()
    client.describe_events.return_value = {"events": []}
    client.describe_events_for_organization.return_value = {"events": []}
    return client


@fixture
def health_api(health_client: MagicMock) -> HealthApi:
    return HealthApi(client=health_client)


@fixture
def sleep() -> MagicMock:
    return MagicMock()
