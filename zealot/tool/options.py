"""Library for common command line flags."""

from argparse import ArgumentParser, BooleanOptionalAction
import logging
import pathlib
from typing import Any

from zealot.config import ZealotConfig, read_config
from zealot.store import Backend, ConsulBackend

_LOGGER = logging.getLogger(__name__)


def add_job_flags(args: ArgumentParser) -> None:
    """Add the flags selecting the job to run."""
    args.add_argument(
        "--name",
        "-n",
        required=True,
        help="Name of the job, used to find its config in the store",
    )
    args.add_argument(
        "--resource",
        "-r",
        required=True,
        help="Type of resource, used to find its template in the store",
    )


def add_config_flags(args: ArgumentParser) -> None:
    """Add flags that override the config file."""
    args.add_argument(
        "--config",
        type=pathlib.Path,
        default=None,
        help="Optional YAML file with zealot settings",
    )
    args.add_argument(
        "--consul-address",
        type=str,
        default=None,
        help="Address of the consul agent (default: $CONSUL_HTTP_ADDR or localhost:8500)",
    )
    args.add_argument(
        "--terraform-version",
        type=str,
        default=None,
        help="Version of terraform to download",
    )
    args.add_argument(
        "--lock",
        type=bool,
        action=BooleanOptionalAction,
        default=None,
        help="Hold a store lock on the resource for the whole run",
    )


async def build_config(
    config: pathlib.Path | None = None,
    consul_address: str | None = None,
    terraform_version: str | None = None,
    lock: bool | None = None,
    **kwargs: Any,  # pylint: disable=unused-argument
) -> ZealotConfig:
    """Build the config from the config file, environment and flags."""
    result = (await read_config(config)).apply_env()
    if consul_address:
        result.consul_address = consul_address
    if terraform_version:
        result.terraform_version = terraform_version
    if lock is not None:
        result.lock = lock
    _LOGGER.debug("Using config %s", result)
    return result


def build_backend(config: ZealotConfig) -> Backend:
    """Return the store backend for the config."""
    return ConsulBackend(config.consul_address)
