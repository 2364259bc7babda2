"""Main application entry point for the TSM exporter."""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

import uvicorn

from .api import create_app
from .collectors.dsmadmc import DsmadmcExecutor
from .collectors.registry import CollectorRegistry, default_registry
from .config.loader import ConfigLoader
from .config.models import DEFAULT_TIMEOUTS, CollectorOptions, ExporterConfig
from .config.settings import Settings
from .exceptions import ConfigError
from .utils.logger import SERVER_LOGGERS, setup_logger

DEFAULT_LISTEN_ADDRESS = ":9310"


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a host:port listen address.

    An empty host listens on all interfaces.

    >>> parse_listen_address(":9310")
    ('0.0.0.0', 9310)

    Raises:
        ValueError: If the port is missing or not a number
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address {address!r}, expected host:port")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def build_parser(registry: CollectorRegistry) -> argparse.ArgumentParser:
    """
    Build the command line parser.

    One --collector.<name>.timeout flag is added per registered collector.
    """
    settings = Settings()
    parser = argparse.ArgumentParser(
        description='Prometheus exporter for IBM Spectrum Protect (TSM)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve targets from tsm_exporter.yaml on :9310
  tsm_exporter

  # Scrape one target
  curl 'http://localhost:9310/tsm?target=sp01'
        """
    )

    parser.add_argument(
        '--config.file',
        dest='config_file',
        default=settings.CONFIG_FILE,
        help='Path to exporter config file (default: tsm_exporter.yaml or TSM_EXPORTER_CONFIG env var)'
    )
    parser.add_argument(
        '--web.listen-address',
        dest='listen_address',
        default=DEFAULT_LISTEN_ADDRESS,
        help=f'Address to listen on for web interface and telemetry (default: {DEFAULT_LISTEN_ADDRESS})'
    )
    parser.add_argument(
        '--path.dsm_log.dir',
        dest='dsm_log_dir',
        default=settings.DSM_LOG_DIR,
        help='Directory to store dsmadmc logs (DSM_LOG)'
    )
    parser.add_argument(
        '--collector.timezone',
        dest='timezone',
        default=None,
        help='Timezone of TSM server timestamps, local zone when unset'
    )
    parser.add_argument(
        '--collector.volumes.classname-exclude',
        dest='volumes_classname_exclude',
        default=None,
        help='Regular expression of volume device classes to exclude'
    )
    for name in registry.names:
        parser.add_argument(
            f'--collector.{name}.timeout',
            dest=f'timeout_{name}',
            type=float,
            default=DEFAULT_TIMEOUTS.get(name, 10),
            help=f'Timeout in seconds for {name} dsmadmc calls'
        )
    parser.add_argument(
        '--log.level',
        dest='log_level',
        default=settings.LOG_LEVEL,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )
    return parser


def options_from_args(args: argparse.Namespace, registry: CollectorRegistry) -> CollectorOptions:
    """Collector options from parsed flags."""
    return CollectorOptions(
        timeouts={name: getattr(args, f'timeout_{name}') for name in registry.names},
        timezone=args.timezone,
        volumes_classname_exclude=args.volumes_classname_exclude,
    )


def load_config(config_path: str, logger: logging.Logger) -> ExporterConfig:
    """
    Load and validate configuration.

    Raises:
        SystemExit: If configuration is invalid
    """
    try:
        logger.info(f"Loading configuration from {config_path}")
        config = ConfigLoader.load_from_file(config_path)
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)
    logger.info(f"Loaded {len(config.targets)} target(s)")
    return config


def main(argv: Optional[List[str]] = None):
    """
    CLI entry point.

    Parses command-line arguments and serves the exporter.
    """
    registry = default_registry()
    args = build_parser(registry).parse_args(argv)
    logger = setup_logger("tsm_exporter", args.log_level, SERVER_LOGGERS)

    try:
        host, port = parse_listen_address(args.listen_address)
        options = options_from_args(args, registry)
    except ValueError as e:
        logger.error(f"Invalid arguments: {e}")
        sys.exit(1)

    config = load_config(args.config_file, logger)
    executor = DsmadmcExecutor(dsm_log_dir=args.dsm_log_dir, logger=logger.getChild("dsmadmc"))
    app = create_app(config, executor, registry, options, logger)

    logger.info(f"Starting tsm_exporter on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=args.log_level.lower(), log_config=None)


if __name__ == '__main__':
    main()
