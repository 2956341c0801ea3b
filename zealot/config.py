"""Configuration objects for zealot.

Settings are resolved in order: dataclass defaults, an optional YAML file,
environment variables, then explicit command line flags.

```yaml
consul_address: consul.service:8500
terraform_version: 0.11.1
workspace: development
lock: true
lock_ttl: 15
```
"""

from dataclasses import dataclass, field
import logging
import os
import platform
from pathlib import Path

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue
import yaml

from .exceptions import InputException

__all__ = [
    "ZealotConfig",
    "read_config",
]

_LOGGER = logging.getLogger(__name__)

APP_NAME = "zealot"
DEFAULT_CONSUL_ADDRESS = "localhost:8500"
DEFAULT_TERRAFORM_VERSION = "0.11.1"
DEFAULT_WORKSPACE = "development"
DEFAULT_LOCK_TTL = 15
RELEASES_URL = "https://releases.hashicorp.com/terraform"

CONSUL_ADDRESS_ENV = "CONSUL_HTTP_ADDR"
TERRAFORM_VERSION_ENV = "ZEALOT_TERRAFORM_VERSION"

_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
}


def host_platform() -> str:
    """Return the release platform suffix for this host, e.g. `linux_amd64`."""
    system = platform.system().lower()
    machine = platform.machine().lower()
    return f"{system}_{_ARCHITECTURES.get(machine, machine)}"


@dataclass
class ZealotConfig(DataClassDictMixin):
    """Settings shared by every stage of a run."""

    consul_address: str = DEFAULT_CONSUL_ADDRESS
    """Address of the Consul agent, used for config and terraform state."""

    terraform_version: str = DEFAULT_TERRAFORM_VERSION
    """Version of the terraform release to download."""

    workspace: str = DEFAULT_WORKSPACE
    """Terraform workspace recorded for the run."""

    platform: str = field(default_factory=host_platform)
    """Release platform suffix of the terraform binary."""

    releases_url: str = RELEASES_URL
    """Base url of the terraform release archive."""

    app_name: str = APP_NAME
    """Name used to build the job and app namespaces."""

    lock: bool = True
    """Hold a store lock on the resource for the whole run."""

    lock_ttl: int = DEFAULT_LOCK_TTL
    """Seconds the store keeps the lock of a run that stopped renewing it."""

    def terraform_url(self) -> str:
        """Return the download url of the terraform release archive."""
        version = self.terraform_version
        return (
            f"{self.releases_url}/{version}/terraform_{version}_{self.platform}.zip"
        )

    def apply_env(self, environ: dict[str, str] | None = None) -> "ZealotConfig":
        """Override settings from environment variables."""
        if environ is None:
            environ = dict(os.environ)
        if address := environ.get(CONSUL_ADDRESS_ENV):
            self.consul_address = address
        if version := environ.get(TERRAFORM_VERSION_ENV):
            self.terraform_version = version
        return self

    class Config(BaseConfig):
        omit_none = True


async def read_config(path: Path | None) -> ZealotConfig:
    """Read the config file at the given path, or return defaults if unset."""
    if path is None:
        return ZealotConfig()
    try:
        async with aiofiles.open(str(path)) as config_file:
            content = await config_file.read()
    except OSError as err:
        raise InputException(f"Unable to read config file {path}: {err}") from err
    if not content.strip():
        return ZealotConfig()
    try:
        return yaml_decode(content, ZealotConfig)
    except (
        yaml.YAMLError,
        MissingField,
        InvalidFieldValue,
        TypeError,
        ValueError,
    ) as err:
        raise InputException(f"Invalid config file {path}: {err}") from err
