# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Sequence
from typing import Optional

from aws_health_exporter.configuration.exporter_config import ExporterConfig
from aws_health_exporter.exporter.exporter import Exporter
from aws_health_exporter.observability.powertools_logging import (
    powertools_logger,
    set_log_level,
)
from aws_health_exporter.scraper.errors import ScraperError

logger = powertools_logger()


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = ExporterConfig.from_args(argv)
    set_log_level(config.log_level)
    logger.info(
        f"AWS Health Exporter v{config.version} - Listening on {config.listen_address}"
    )
    logger.debug(str(config))

    try:
        exporter = Exporter.from_config(config)
    except ScraperError as err:
        logger.error(f"Failed to create exporter: {err}")
        return 1

    try:
        exporter.serve_forever(config)
    except OSError as err:
        logger.error(f"Failed to serve on {config.listen_address}: {err}")
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
