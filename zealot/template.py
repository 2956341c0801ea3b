"""Library for resolving the template and module parameters of a job.

Every key read here is required, so each is read with `fail_fast=True` and a
single missing key stops the run before any external process is started.

App namespace (`appconfig/zealot/`):
  - `<resource type>/template`: template text for the resource type

Job namespace (`jobconfig/zealot/<name>/`):
  - `module/ResourceName`, `module/Content`, `module/Filename`
  - `WorkingDir`: directory the terraform file is written to
  - `autoapply`: whether changes may be applied without review
"""

from dataclasses import dataclass
import logging
from pathlib import Path

from .manifest import Module
from .store import Namespace

__all__ = [
    "ResolvedJob",
    "resolve",
    "template_key",
]

_LOGGER = logging.getLogger(__name__)

RESOURCE_NAME_KEY = "module/ResourceName"
CONTENT_KEY = "module/Content"
FILENAME_KEY = "module/Filename"
WORKING_DIR_KEY = "WorkingDir"
AUTOAPPLY_KEY = "autoapply"


def template_key(resource_type: str) -> str:
    """Return the app namespace key holding the template for a resource type."""
    return f"{resource_type}/template"


@dataclass
class ResolvedJob:
    """Configuration of a job read from the store."""

    template: str
    """Template text for the resource type."""

    module: Module
    """Parameters used to render the template."""

    working_dir: Path
    """Directory where terraform is run."""

    autoapply: bool
    """Apply changes found by plan without review."""


async def resolve(app: Namespace, job: Namespace, resource_type: str) -> ResolvedJob:
    """Read the template and module parameters of a job."""
    _LOGGER.debug("Resolving job %s for resource type %s", job, resource_type)
    resource_name = await job.get_string(RESOURCE_NAME_KEY, fail_fast=True)
    content = await job.get_string(CONTENT_KEY, fail_fast=True)
    filename = await job.get_string(FILENAME_KEY, fail_fast=True)
    working_dir = await job.get_string(WORKING_DIR_KEY, fail_fast=True)
    autoapply = await job.get_bool(AUTOAPPLY_KEY, fail_fast=True)
    template = await app.get_string(template_key(resource_type), fail_fast=True)
    return ResolvedJob(
        template=template,
        module=Module.for_namespace(job, resource_name, content, filename),
        working_dir=Path(working_dir),
        autoapply=autoapply,
    )
