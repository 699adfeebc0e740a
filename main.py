#!/usr/bin/env python3
"""
TLS Certificate Audit - Main Application Entry Point
"""

import asyncio
import sys
from pathlib import Path

import click
import yaml

from tls_cert_audit import __version__
from tls_cert_audit.config import create_example_config, load_config
from tls_cert_audit.logger import setup_logging
from tls_cert_audit.monitor import CertificateAudit

EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


@click.command()
@click.option(
    "--config",
    "-f",
    type=click.Path(dir_okay=False, path_type=Path),
    default="config.yaml",
    show_default=True,
    help="Path to configuration file",
)
@click.option("--version", "-v", is_flag=True, help="Show version information")
@click.option("--dry-run", is_flag=True, help="Check certificates and print the report only")
@click.option(
    "--init-config", is_flag=True, help="Write an example configuration to the --config path"
)
def main(config: Path, version: bool, dry_run: bool, init_config: bool) -> None:
    """TLS Certificate Audit - Check TLS certificates of configured sites for expiry."""

    if version:
        print(f"TLS Certificate Audit v{__version__}")
        return

    if init_config:
        if config.exists():
            print(f"Refusing to overwrite existing file: {config}", file=sys.stderr)
            sys.exit(EXIT_CONFIG_ERROR)
        create_example_config(str(config))
        print(f"Example configuration written to {config}")
        return

    try:
        settings = load_config(str(config))
    except (OSError, yaml.YAMLError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    if dry_run:
        settings = settings.model_copy(update={"dry_run": True})

    setup_logging(settings)

    try:
        audit = CertificateAudit(settings)
        exit_code = asyncio.run(audit.run())
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
