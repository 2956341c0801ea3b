"""Tests for resolving job config from the store."""

import pathlib

import pytest

from zealot import template
from zealot.exceptions import FatalError, KeyNotFoundError
from zealot.render import DEFAULT_TEMPLATE
from zealot.store import InMemoryBackend, Namespace


async def test_resolve(backend: InMemoryBackend, working_dir: pathlib.Path) -> None:
    """Test reading the template and module parameters of a job."""
    job = await template.resolve(
        Namespace.app(backend), Namespace.job(backend, "demo"), "local_file"
    )
    assert job.template == DEFAULT_TEMPLATE
    assert job.module.resource_name == "web"
    assert job.module.content == "hello"
    assert job.module.filename == "x.txt"
    assert job.module.state_path == "jobconfig/zealot/demo/state"
    assert job.working_dir == working_dir
    assert job.autoapply


async def test_resolve_autoapply_literal(backend: InMemoryBackend) -> None:
    """Test autoapply only accepts the exact true literals."""
    await backend.put("jobconfig/zealot/demo/autoapply", b"1")
    job = await template.resolve(
        Namespace.app(backend), Namespace.job(backend, "demo"), "local_file"
    )
    assert not job.autoapply


@pytest.mark.parametrize(
    "key",
    [
        "jobconfig/zealot/demo/module/ResourceName",
        "jobconfig/zealot/demo/module/Content",
        "jobconfig/zealot/demo/module/Filename",
        "jobconfig/zealot/demo/WorkingDir",
        "jobconfig/zealot/demo/autoapply",
        "appconfig/zealot/local_file/template",
    ],
)
async def test_resolve_missing_key(backend: InMemoryBackend, key: str) -> None:
    """Test every key of a job is required."""
    del backend.data[key]
    with pytest.raises(FatalError, match=key) as exc_info:
        await template.resolve(
            Namespace.app(backend), Namespace.job(backend, "demo"), "local_file"
        )
    assert isinstance(exc_info.value.__cause__, KeyNotFoundError)


async def test_resolve_unknown_resource_type(backend: InMemoryBackend) -> None:
    """Test a resource type without a template."""
    with pytest.raises(FatalError, match="appconfig/zealot/aws_instance/template"):
        await template.resolve(
            Namespace.app(backend), Namespace.job(backend, "demo"), "aws_instance"
        )
