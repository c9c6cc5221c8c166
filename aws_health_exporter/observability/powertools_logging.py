# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Optional, Union

from aws_lambda_powertools import Logger

SERVICE_NAME = "aws-health-exporter"


def powertools_logger(
    service: str = SERVICE_NAME, level: Optional[Union[str, int]] = None
) -> Logger:
    silence_boto_logs()
    logger = Logger(
        use_rfc3339=True,
        log_uncaught_exceptions=True,
        service=service,
        level=level,
    )
    return logger


def set_log_level(level: Union[str, int], service: str = SERVICE_NAME) -> None:
    """apply a level to every powertools logger created for `service`"""
    powertools_logger(service).setLevel(level)


def silence_boto_logs() -> None:
    logging.getLogger("boto3").setLevel(logging.WARN)
    logging.getLogger("botocore").setLevel(logging.WARN)
    logging.getLogger("s3transfer").setLevel(logging.WARN)
    logging.getLogger("urllib3").setLevel(logging.WARN)
