"""Library for running terraform stages in a working directory.

The terraform binary is downloaded into `<working dir>/bin` and every stage
runs with the working directory as its current directory:

```python
from zealot.terraform import Terraform

tf = Terraform(working_dir, config)
await tf.fetch()
await tf.init()
result = await tf.plan()
if result.changes_available:
    await tf.apply()
```
"""

from dataclasses import dataclass
from enum import IntEnum
import io
import logging
import os
from pathlib import Path
import zipfile

import aiofiles
import httpx

from .command import Command
from .config import ZealotConfig
from .exceptions import (
    ApplyException,
    CommandException,
    FetchException,
    InitException,
    PlanException,
    UnknownExitStatusError,
)

__all__ = [
    "Terraform",
    "PlanStatus",
    "PlanResult",
]

_LOGGER = logging.getLogger(__name__)

BIN_DIR = "bin"
TERRAFORM_BIN = "./bin/terraform"
PLAN_FILE = ".plan"

_DOWNLOAD_TIMEOUT = 300.0


class PlanStatus(IntEnum):
    """Exit status of `terraform plan -detailed-exitcode`."""

    NO_CHANGES = 0
    ERROR = 1
    CHANGES = 2


@dataclass
class PlanResult:
    """Outcome of a successful plan."""

    status: PlanStatus
    """Exit status reported by terraform."""

    output: str
    """Combined output of the plan command."""

    @property
    def changes_available(self) -> bool:
        """Return True if terraform found changes to apply."""
        return self.status == PlanStatus.CHANGES


class Terraform:
    """Library for issuing terraform commands."""

    def __init__(
        self,
        working_dir: Path,
        config: ZealotConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Terraform."""
        self._working_dir = working_dir
        self._config = config
        self._http_client = http_client

    @property
    def working_dir(self) -> Path:
        """Return the directory terraform runs in."""
        return self._working_dir

    @property
    def plan_file(self) -> Path:
        """Return the path of the saved plan artifact."""
        return self._working_dir / PLAN_FILE

    def _command(
        self, args: list[str], exc: type[CommandException], check: bool = True
    ) -> Command:
        return Command(
            [TERRAFORM_BIN] + args, cwd=self._working_dir, exc=exc, check=check
        )

    async def _download(self, url: str) -> bytes:
        if self._http_client is not None:
            response = await self._http_client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=_DOWNLOAD_TIMEOUT) as client:
                response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content

    async def fetch(self) -> Path:
        """Download the terraform release and make the binary executable."""
        url = self._config.terraform_url()
        bin_dir = self._working_dir / BIN_DIR
        binary = bin_dir / "terraform"
        _LOGGER.info("Fetching terraform %s", url)
        try:
            archive = await self._download(url)
            bin_dir.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(io.BytesIO(archive)) as zip_file:
                zip_file.extractall(bin_dir)
            os.chmod(binary, 0o755)
        except httpx.HTTPError as err:
            raise FetchException(f"Unable to download {url}: {err}") from err
        except zipfile.BadZipFile as err:
            raise FetchException(f"Invalid terraform archive {url}: {err}") from err
        except OSError as err:
            raise FetchException(f"Unable to install {binary}: {err}") from err
        return binary

    async def init(self) -> str:
        """Run `terraform init`, returning its output."""
        result = await self._command(["init", "-input=false"], exc=InitException).run()
        _LOGGER.info("[INIT] %s", result.text)
        return result.text

    async def plan(self) -> PlanResult:
        """Run `terraform plan` and interpret its detailed exit code.

        Exit status 1 raises PlanException and any status other than 0, 1 or
        2 raises UnknownExitStatusError.
        """
        result = await self._command(
            ["plan", "-out", PLAN_FILE, "-detailed-exitcode", "-no-color"],
            exc=PlanException,
            check=False,
        ).run()
        _LOGGER.info("Exit code from plan is: %d", result.returncode)
        try:
            status = PlanStatus(result.returncode)
        except ValueError as err:
            raise UnknownExitStatusError(result.returncode) from err
        if status == PlanStatus.ERROR:
            raise PlanException(f"terraform plan failed:\n{result.text}")
        _LOGGER.info("PLAN\n%s", result.text)
        return PlanResult(status=status, output=result.text)

    async def read_plan(self) -> bytes:
        """Return the contents of the saved plan artifact."""
        try:
            async with aiofiles.open(self.plan_file, mode="rb") as plan_file:
                return await plan_file.read()
        except OSError as err:
            raise PlanException(f"Unable to read plan {self.plan_file}: {err}") from err

    async def apply(self) -> str:
        """Run `terraform apply` against the saved plan, returning its output."""
        result = await self._command(
            ["apply", "-input=false", PLAN_FILE], exc=ApplyException
        ).run()
        _LOGGER.info("APPLY\n%s", result.text)
        return result.text
