# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import argparse
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Final, Optional

from aws_health_exporter import __version__
from aws_health_exporter.configuration.validation import (
    ALL_REGIONS,
    ValidationException,
    validate_file_path,
    validate_region,
    validate_role_arn,
    validate_socket_address,
)
from aws_health_exporter.scraper.events import EventScope
from aws_health_exporter.util.regions import GLOBAL_REGION

PROG_NAME: Final = "aws-health-exporter"
DEFAULT_LISTEN_ADDRESS: Final = "[::]:9679"

HELP_LISTEN = "HTTP listen address"
HELP_DEBUG = "Enable debug logging"
HELP_QUIET = "Quiet logging. Only logs warning and above."
HELP_REGION = "Region for which to retrieve events, may be repeated"
HELP_SERVICE = "Service for which to retrieve events, may be repeated"
HELP_ORGANIZATION = "Retrieve the events of the whole AWS Organization"
HELP_ROLE = "Assume IAM Role"
HELP_ROLE_REGION = "Endpoint to use for calls to STS"
HELP_EXTERNAL_ID = "External ID passed when assuming the IAM Role"
HELP_SOURCE_IDENTITY = "Source identity passed when assuming the IAM Role"
HELP_TLS_KEY = "Path to TLS certificate key"
HELP_TLS_CERT = "Path to TLS certificate"


@dataclass(frozen=True)
class TlsConfig:
    key: str
    cert: str


@dataclass(frozen=True)
class ExporterConfig:
    listen_host: str
    listen_port: int
    log_level: str
    regions: Optional[tuple[str, ...]] = None
    services: Optional[tuple[str, ...]] = None
    scope: EventScope = EventScope.ACCOUNT
    role: Optional[str] = None
    role_region: Optional[str] = None
    external_id: Optional[str] = None
    source_identity: Optional[str] = None
    tls_config: Optional[TlsConfig] = None
    version: str = __version__

    @property
    def listen_address(self) -> str:
        if ":" in self.listen_host:
            return f"[{self.listen_host}]:{self.listen_port}"
        return f"{self.listen_host}:{self.listen_port}"

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> "ExporterConfig":
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.role_region and not args.role:
            parser.error("--role-region requires --role")
        if (args.external_id or args.source_identity) and not args.role:
            parser.error("--external-id and --source-identity require --role")
        if bool(args.tls_key) != bool(args.tls_cert):
            parser.error("--tls-key and --tls-cert must be given together")

        if args.debug:
            log_level = "DEBUG"
        elif args.quiet:
            log_level = "WARNING"
        else:
            log_level = "INFO"

        host, port = args.listen
        return ExporterConfig(
            listen_host=host,
            listen_port=port,
            log_level=log_level,
            regions=normalize_regions(args.region),
            services=normalize_services(args.service),
            scope=EventScope.ORGANIZATION if args.organization else EventScope.ACCOUNT,
            role=args.role,
            role_region=args.role_region,
            external_id=args.external_id,
            source_identity=args.source_identity,
            tls_config=(
                TlsConfig(key=args.tls_key, cert=args.tls_cert)
                if args.tls_key
                else None
            ),
        )

    def __str__(self) -> str:
        lines = [
            f"Starting {PROG_NAME} v{self.version}",
            "",
            f"{'Listening on:':<18}{self.listen_address}",
            f"{'Log level:':<18}{self.log_level}",
            f"{'Events of:':<18}{self.scope.value}",
        ]
        if self.role:
            lines.append(f"{'Role:':<18}{self.role}")
        if self.role_region:
            lines.append(f"{'Role STS Endpoint:':<18}{self.role_region}")
        if self.tls_config:
            lines.append(f"{'TLS config:':<18}")
            lines.append(f"  Key file:         {self.tls_config.key}")
            lines.append(f"  Certificate file: {self.tls_config.cert}")
        else:
            lines.append(f"{'TLS config:':<18}Off")
        lines.extend(_display_list("Regions:", self.regions))
        lines.extend(_display_list("Services:", self.services))
        return "\n".join(lines)


def _display_list(title: str, values: Optional[Sequence[str]]) -> list[str]:
    if values is None:
        return [f"{title:<18}All"]
    return [f"{title:<18}"] + [f"  * {value}" for value in values]


def normalize_regions(regions: Optional[Sequence[str]]) -> Optional[tuple[str, ...]]:
    """
    Events that are not tied to a region are reported under the `global` pseudo-region,
    which is added to any explicit list of regions. `all` lifts the region filter.
    """
    if not regions or ALL_REGIONS in regions:
        return None
    return tuple(sorted({*regions, GLOBAL_REGION}))


def normalize_services(services: Optional[Sequence[str]]) -> Optional[tuple[str, ...]]:
    if not services:
        return None
    return tuple(sorted(set(services)))


def _argument_type(
    validator: Callable[[str], object], name: str
) -> Callable[[str], object]:
    def convert(value: str) -> object:
        try:
            return validator(value)
        except ValidationException as err:
            raise argparse.ArgumentTypeError(str(err)) from err

    convert.__name__ = name
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Prometheus exporter for AWS Health events",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-l",
        "--listen",
        metavar="HOST:PORT",
        default=DEFAULT_LISTEN_ADDRESS,
        type=_argument_type(validate_socket_address, "socket address"),
        help=HELP_LISTEN,
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-d", "--debug", action="count", default=0, help=HELP_DEBUG)
    verbosity.add_argument("-q", "--quiet", action="store_true", help=HELP_QUIET)
    parser.add_argument(
        "-r",
        "--region",
        action="append",
        type=_argument_type(validate_region, "region"),
        help=HELP_REGION,
    )
    parser.add_argument("-s", "--service", action="append", help=HELP_SERVICE)
    parser.add_argument(
        "--organization", action="store_true", help=HELP_ORGANIZATION
    )
    parser.add_argument(
        "--role", type=_argument_type(validate_role_arn, "role ARN"), help=HELP_ROLE
    )
    parser.add_argument(
        "--role-region",
        type=_argument_type(validate_region, "region"),
        help=HELP_ROLE_REGION,
    )
    parser.add_argument("--external-id", help=HELP_EXTERNAL_ID)
    parser.add_argument("--source-identity", help=HELP_SOURCE_IDENTITY)
    parser.add_argument(
        "--tls-key",
        type=_argument_type(validate_file_path, "file"),
        help=HELP_TLS_KEY,
    )
    parser.add_argument(
        "--tls-cert",
        type=_argument_type(validate_file_path, "file"),
        help=HELP_TLS_CERT,
    )
    return parser
