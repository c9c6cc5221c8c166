# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import socket
import ssl
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Final, Optional
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)
from prometheus_client.exposition import ThreadingWSGIServer

from aws_health_exporter.configuration.exporter_config import ExporterConfig
from aws_health_exporter.observability.powertools_logging import powertools_logger
from aws_health_exporter.scraper.errors import ScraperError
from aws_health_exporter.scraper.health_api import HealthApi
from aws_health_exporter.scraper.scraper import Scraper
from aws_health_exporter.util.session_manager import StsCredentialCache

if TYPE_CHECKING:
    from wsgiref.types import StartResponse, WSGIEnvironment
else:
    StartResponse = object
    WSGIEnvironment = object

STATUS_SUCCESS: Final = "success"
STATUS_ERROR: Final = "error"

HOME_PAGE: Final = """<html>
<head><title>AWS Health Exporter</title></head>
<body>
    AWS Health Exporter v{version}
    <ul>
        <li><a href="/status">Exporter status</a></li>
        <li><a href="/metrics">Metrics</a></li>
    </ul>
</body>
</html>
"""

STATUS_PAGE: Final = (
    "<html><head><title>AWS Health Exporter</title></head><body>Ok</body></html>"
)

logger = powertools_logger()


class IPv6ThreadingWSGIServer(ThreadingWSGIServer):
    address_family = socket.AF_INET6


class LoggingRequestHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(f"{self.address_string()} - {format % args}")


def build_scraper(config: ExporterConfig) -> Scraper:
    credentials: Optional[StsCredentialCache] = None
    if config.role:
        credentials = StsCredentialCache(
            role_arn=config.role,
            external_id=config.external_id,
            source_identity=config.source_identity,
            region=config.role_region,
        )
    return Scraper(
        HealthApi(credentials),
        regions=config.regions,
        services=config.services,
        scope=config.scope,
    )


class Exporter:
    """
    Serves the Health events as Prometheus metrics. Every request to `/metrics` runs
    one scrape cycle.
    """

    def __init__(self, scraper: Scraper, version: str) -> None:
        self._scraper = scraper
        self._version = version
        self._registry = CollectorRegistry()

        info = Gauge(
            "aws_health_exporter_info",
            "Exporter information",
            labelnames=["version"],
            registry=self._registry,
        )
        info.labels(version).set(1)

        self._http_requests = Counter(
            "http_requests",
            "Number of HTTP requests received by the exporter",
            labelnames=["status"],
            registry=self._registry,
        )

    @classmethod
    def from_config(cls, config: ExporterConfig) -> "Exporter":
        return Exporter(build_scraper(config), config.version)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def scrape(self) -> bytes:
        """
        Metrics of one scrape cycle in the text exposition format. When the cycle fails
        the events found before the failure are still published next to a success gauge
        of 0.
        """
        registry = CollectorRegistry()
        success = Gauge(
            "aws_health_events_success",
            "Whether retrieval of health events from AWS API was successful",
            registry=registry,
        )
        family = self._scraper.new_metric_family()
        try:
            self._scraper.describe_events(family)
        except ScraperError as err:
            logger.warning(f"Failed to describe events: {err}")
            status = STATUS_ERROR
        else:
            success.set(1)
            status = STATUS_SUCCESS
        registry.register(family.gauge)
        self._http_requests.labels(status).inc()
        return generate_latest(self._registry) + generate_latest(registry)

    def __call__(
        self, environ: WSGIEnvironment, start_response: StartResponse
    ) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if path in ("", "/"):
            body = HOME_PAGE.format(version=self._version).encode()
            content_type = "text/html; charset=utf-8"
        elif path == "/status":
            body = STATUS_PAGE.encode()
            content_type = "text/html; charset=utf-8"
        elif path == "/metrics":
            body = self.scrape()
            content_type = CONTENT_TYPE_LATEST
        else:
            start_response("404 Not Found", [("Content-Type", "text/plain")])
            return [b"Not Found"]
        start_response("200 OK", [("Content-Type", content_type)])
        return [body]

    def serve_forever(self, config: ExporterConfig) -> None:
        server_class = (
            IPv6ThreadingWSGIServer if ":" in config.listen_host else ThreadingWSGIServer
        )
        httpd = make_server(
            config.listen_host,
            config.listen_port,
            self,
            server_class=server_class,
            handler_class=LoggingRequestHandler,
        )
        if config.tls_config is not None:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            context.load_cert_chain(
                certfile=config.tls_config.cert, keyfile=config.tls_config.key
            )
            httpd.socket = context.wrap_socket(httpd.socket, server_side=True)

        logger.info(f"Listening on {config.listen_address}")
        with httpd:
            httpd.serve_forever()
