# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from functools import cache
from typing import Final

from boto3 import Session

# AWS Health reports events that are not tied to a region under this name
GLOBAL_REGION: Final = "global"

# the Health API is served from a single endpoint region
HEALTH_API_REGION: Final = "us-east-1"


@cache
def known_regions() -> frozenset[str]:
    """all region names across the partitions described by the installed botocore endpoint data"""
    session = Session()
    regions: set[str] = set()
    for partition in session.get_available_partitions():
        regions.update(session.get_available_regions("ec2", partition_name=partition))
    return frozenset(regions)


def is_known_region(region: str) -> bool:
    return region in known_regions()
