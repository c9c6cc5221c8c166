# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Final, Optional

from boto3 import Session
from botocore.exceptions import BotoCoreError, ClientError

from aws_health_exporter.observability.powertools_logging import powertools_logger
from aws_health_exporter.scraper.errors import CredentialsError, InvalidRegion
from aws_health_exporter.util import get_boto_config
from aws_health_exporter.util.regions import HEALTH_API_REGION, is_known_region
from aws_health_exporter.util.time import as_utc

if TYPE_CHECKING:
    from mypy_boto3_sts.client import STSClient
else:
    STSClient = object

STS_SESSION_NAME: Final = "aws_health_exporter"

# minimum lifetime left on cached credentials, shorter lived credentials are refreshed
STS_CREDENTIAL_CACHE_TIMEOUT: Final = timedelta(seconds=60)

logger = powertools_logger()


def sts_client(region: Optional[str] = None) -> STSClient:
    """
    STS client bound to the regional endpoint of `region`

    The calling session's region is used when no region is given, falling back to the
    Health API region for sessions without one.
    """
    session: Final = Session()
    region_name = region or session.region_name or HEALTH_API_REGION
    if not is_known_region(region_name):
        raise InvalidRegion(f"Not a valid AWS region: {region_name}")

    if session.get_partition_for_region(region_name) == "aws-cn":
        sts_regional_endpoint = str.format(
            "https://sts.{}.amazonaws.com.cn", region_name
        )
    else:
        sts_regional_endpoint = str.format(
            "https://sts.{}.amazonaws.com", region_name
        )

    client: STSClient = session.client(
        "sts",
        region_name=region_name,
        endpoint_url=sts_regional_endpoint,
        config=get_boto_config(),
    )
    return client


@dataclass(frozen=True)
class CredentialSet:
    """temporary credentials issued by STS, replaced as a whole when they are refreshed"""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)
    expiration: datetime

    def is_valid_at(self, moment: datetime) -> bool:
        return self.expiration > moment

    @classmethod
    def from_assume_role_response(cls, response: Any) -> "CredentialSet":
        credentials = response.get("Credentials")
        if not credentials:
            raise CredentialsError("STS AssumeRole returned no credentials")
        try:
            return CredentialSet(
                access_key_id=credentials["AccessKeyId"],
                secret_access_key=credentials["SecretAccessKey"],
                session_token=credentials["SessionToken"],
                expiration=as_utc(credentials["Expiration"]),
            )
        except KeyError as err:
            raise CredentialsError(
                f"STS AssumeRole returned incomplete credentials, missing {err.args[0]}"
            ) from err


class StsCredentialCache:
    """
    Single slot cache of the temporary credentials of an assumed role.

    Cached credentials are handed out until less than `STS_CREDENTIAL_CACHE_TIMEOUT`
    of their lifetime is left, then the role is assumed again. Checking the cache and
    refreshing it happens under one lock, so concurrent callers never trigger more
    than one AssumeRole call at a time. Callers that waited on a refresh receive its
    outcome, be it the new credentials or the error that caused it to fail.
    """

    def __init__(
        self,
        *,
        role_arn: str,
        external_id: Optional[str] = None,
        source_identity: Optional[str] = None,
        region: Optional[str] = None,
        client: Optional[STSClient] = None,
    ) -> None:
        self._role_arn = role_arn
        self._external_id = external_id
        self._source_identity = source_identity
        self._sts = client if client is not None else sts_client(region)

        self._lock = threading.Lock()
        self._cached: Optional[CredentialSet] = None
        self._last_error: Optional[CredentialsError] = None
        self._refresh_count = 0

    @property
    def role_arn(self) -> str:
        return self._role_arn

    def get_credentials(self) -> CredentialSet:
        refreshes_seen = self._refresh_count
        with self._lock:
            if self._refresh_count != refreshes_seen:
                # a refresh completed while waiting for the lock
                if self._last_error is not None:
                    raise CredentialsError(str(self._last_error)) from self._last_error
                if self._cached is not None:
                    return self._cached

            cached = self._cached
            if cached is not None and cached.is_valid_at(
                datetime.now(timezone.utc) + STS_CREDENTIAL_CACHE_TIMEOUT
            ):
                logger.debug("Returning cached credentials")
                return cached

            logger.debug(
                f"No valid credentials in cache, assuming role {self._role_arn}"
            )
            try:
                credentials = self._assume_role()
            except CredentialsError as err:
                self._cached = None
                self._last_error = err
                raise
            finally:
                self._refresh_count += 1

            self._cached = credentials
            self._last_error = None
            return credentials

    def _assume_role(self) -> CredentialSet:
        request: dict[str, str] = {
            "RoleArn": self._role_arn,
            "RoleSessionName": STS_SESSION_NAME,
        }
        if self._external_id:
            request["ExternalId"] = self._external_id
        if self._source_identity:
            request["SourceIdentity"] = self._source_identity

        try:
            response = self._sts.assume_role(**request)  # type: ignore[arg-type]
        except (ClientError, BotoCoreError) as err:
            raise CredentialsError(
                f"Unable to assume role {self._role_arn}: {err}"
            ) from err
        return CredentialSet.from_assume_role_response(response)
