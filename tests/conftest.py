"""Fixtures shared by zealot tests."""

from collections.abc import Callable
import io
import pathlib
import zipfile

import httpx
import pytest

from zealot.config import ZealotConfig
from zealot.render import DEFAULT_TEMPLATE
from zealot.store import InMemoryBackend

JOB_BASE = "jobconfig/zealot/demo/"
TEMPLATE_KEY = "appconfig/zealot/local_file/template"

FAKE_TERRAFORM = """\
#!/bin/sh
echo "$@" >> calls.log
case "$1" in
  init)
    echo "Terraform has been successfully initialized!"
    exit {init_exit}
    ;;
  plan)
    printf 'PLANDATA' > .plan
    echo "Plan: 1 to add, 0 to change, 0 to destroy."
    exit {plan_exit}
    ;;
  apply)
    echo "Apply complete! Resources: 1 added, 0 changed, 0 destroyed."
    exit {apply_exit}
    ;;
esac
exit 0
"""


def fake_terraform_script(
    init_exit: int = 0, plan_exit: int = 0, apply_exit: int = 0
) -> str:
    """Return a shell script standing in for the terraform binary."""
    return FAKE_TERRAFORM.format(
        init_exit=init_exit, plan_exit=plan_exit, apply_exit=apply_exit
    )


def terraform_archive(script: str) -> bytes:
    """Return a release zip archive containing the script as `terraform`."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zip_file:
        zip_file.writestr("terraform", script)
    return buf.getvalue()


@pytest.fixture(name="terraform_calls")
def terraform_calls_fixture(working_dir: pathlib.Path) -> Callable[[], list[str]]:
    """Return the terraform invocations recorded by the fake binary."""

    def _calls() -> list[str]:
        log = working_dir / "calls.log"
        if not log.exists():
            return []
        return log.read_text().splitlines()

    return _calls


@pytest.fixture(name="working_dir")
def working_dir_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """Directory the job config points terraform at."""
    return tmp_path / "work"


@pytest.fixture(name="config")
def config_fixture() -> ZealotConfig:
    """Config with a fixed platform so release urls are stable."""
    return ZealotConfig(platform="linux_amd64")


@pytest.fixture(name="job_data")
def job_data_fixture(working_dir: pathlib.Path) -> dict[str, bytes]:
    """Store contents for the `demo` job of type `local_file`."""
    return {
        f"{JOB_BASE}module/ResourceName": b"web",
        f"{JOB_BASE}module/Content": b"hello",
        f"{JOB_BASE}module/Filename": b"x.txt",
        f"{JOB_BASE}WorkingDir": str(working_dir).encode(),
        f"{JOB_BASE}autoapply": b"true",
        TEMPLATE_KEY: DEFAULT_TEMPLATE.encode(),
    }


@pytest.fixture(name="backend")
async def backend_fixture(job_data: dict[str, bytes]) -> InMemoryBackend:
    """Connected in-memory store holding the job data."""
    backend = InMemoryBackend(job_data, address="localhost:8500")
    await backend.connect()
    return backend


@pytest.fixture(name="release_server")
def release_server_fixture() -> Callable[..., httpx.AsyncClient]:
    """Factory for an http client serving a fake terraform release."""

    def _make(
        init_exit: int = 0,
        plan_exit: int = 0,
        apply_exit: int = 0,
        requests: list[httpx.Request] | None = None,
    ) -> httpx.AsyncClient:
        archive = terraform_archive(
            fake_terraform_script(init_exit, plan_exit, apply_exit)
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(request)
            return httpx.Response(200, content=archive)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture(name="install_terraform")
def install_terraform_fixture(
    working_dir: pathlib.Path,
) -> Callable[..., pathlib.Path]:
    """Factory that installs the fake terraform binary without downloading it."""

    def _install(
        init_exit: int = 0, plan_exit: int = 0, apply_exit: int = 0
    ) -> pathlib.Path:
        binary = working_dir / "bin" / "terraform"
        binary.parent.mkdir(parents=True, exist_ok=True)
        binary.write_text(fake_terraform_script(init_exit, plan_exit, apply_exit))
        binary.chmod(0o755)
        return binary

    return _install
