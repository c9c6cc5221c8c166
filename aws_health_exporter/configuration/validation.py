# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import re
from ipaddress import IPv4Address, IPv6Address, ip_address
from pathlib import Path
from typing import Final

from aws_health_exporter.util.regions import GLOBAL_REGION, is_known_region

ALL_REGIONS: Final = "all"

# https://docs.aws.amazon.com/IAM/latest/APIReference/API_Role.html
ROLE_ARN_MIN_LENGTH: Final = 20
ROLE_ARN_PATTERN: Final = re.compile(r"arn:aws:iam::\d{12}:role/.+", re.IGNORECASE)


class ValidationException(Exception):
    pass


def validate_socket_address(value: str) -> tuple[str, int]:
    """
    :param value: an `ipv4:port` or `[ipv6]:port` socket address
    :return: host and port of the address
    """
    host, separator, port = value.rpartition(":")
    if not separator or not host:
        raise ValidationException(f"invalid socket address syntax: {value}")

    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        address = ip_address(host)
    except ValueError as err:
        raise ValidationException(f"invalid IP address {host} in {value}") from err
    if isinstance(address, IPv6Address) and not bracketed:
        raise ValidationException(f"IPv6 addresses must be enclosed in []: {value}")
    if isinstance(address, IPv4Address) and bracketed:
        raise ValidationException(f"IPv4 addresses must not be enclosed in []: {value}")

    if not port.isdigit() or not 0 <= int(port) <= 65535:
        raise ValidationException(f"invalid port {port} in {value}")
    return host, int(port)


def validate_region(region: str) -> str:
    if region in (ALL_REGIONS, GLOBAL_REGION) or is_known_region(region):
        return region
    raise ValidationException(f"Not a valid AWS region: {region}")


def validate_role_arn(role_arn: str) -> str:
    """
    The minimum length is the one enforced by IAM for role ARNs
    """
    if len(role_arn) < ROLE_ARN_MIN_LENGTH:
        raise ValidationException(
            f"Must have length greater than or equal to {ROLE_ARN_MIN_LENGTH}"
        )
    if not ROLE_ARN_PATTERN.fullmatch(role_arn):
        raise ValidationException(
            "must be of the form `arn:aws:iam::123456789012:role/something`"
        )
    return role_arn


def validate_file_path(file_path: str) -> str:
    if not Path(file_path).is_file():
        raise ValidationException(f"{file_path} is not a file")
    return file_path
