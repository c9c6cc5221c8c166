# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from os import environ
from typing import Any, Optional

from botocore.config import Config as _Config


def get_boto_config(total_max_attempts: Optional[int] = None) -> _Config:
    """
    Returns a boto3 config with standard retries and `user_agent_extra`

    :param total_max_attempts: when set, caps the attempts botocore makes for a single call (1 disables its retries)
    """
    retries: dict[str, Any] = {"mode": "standard"}
    if total_max_attempts is None:
        retries["max_attempts"] = 5
    else:
        retries["total_max_attempts"] = total_max_attempts
    return _Config(
        retries=retries,
        user_agent_extra=environ.get("USER_AGENT_EXTRA"),
    )
