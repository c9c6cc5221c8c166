# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class ScraperError(Exception):
    """A scrape cycle could not be completed"""


class InvalidRegion(ScraperError):
    """A region name is not known to the AWS partitions"""


class CredentialsError(ScraperError):
    """Role assumption failed or returned no usable credentials"""


class ProviderError(ScraperError):
    """A call to the AWS Health API failed for a reason other than throttling"""


class TooManyRetries(ScraperError):
    """The AWS Health API kept throttling requests after the last allowed retry"""


class MetricRegistrationError(ScraperError):
    """An event label set was rejected by the metric family"""
