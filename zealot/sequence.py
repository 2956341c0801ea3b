"""Run sequence for provisioning a single named resource.

A run moves strictly forward through its states, once per process:

```
UNINITIALIZED -> INITIALIZED -> PLANNED -> APPLIED | SKIPPED
```

Any stage that raises moves the run to FAILED and every later stage refuses
to start. There is no retry and no resume: a failed run is abandoned and the
whole run is started again from scratch.

Persisted keys in the job namespace:
  - `PlanText`: output of every successful plan
  - `ChangesAvailable`, `planfile`: only when plan found changes
"""

from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from enum import StrEnum
import logging
from pathlib import Path
from time import perf_counter
from typing import Generator

import httpx

from . import render, template
from .config import ZealotConfig
from .exceptions import FatalError, SequenceError
from .manifest import Module
from .store import Backend, Namespace, ResourceLock
from .terraform import PlanStatus, Terraform

__all__ = [
    "Run",
    "RunState",
    "RunSequencer",
]

_LOGGER = logging.getLogger(__name__)

PLAN_TEXT_KEY = "PlanText"
PLAN_FILE_KEY = "planfile"
CHANGES_AVAILABLE_KEY = "ChangesAvailable"


class RunState(StrEnum):
    """Progress of a run through its stages."""

    UNINITIALIZED = "Uninitialized"
    INITIALIZED = "Initialized"
    PLANNED = "Planned"
    APPLIED = "Applied"
    SKIPPED = "Skipped"
    FAILED = "Failed"


@dataclass
class Run:
    """State of a single provisioning run, never persisted itself."""

    name: str
    """Name of the job, used to build the job namespace."""

    resource_type: str
    """Type of resource, used to find the template."""

    workspace: str
    """Terraform workspace of the run."""

    tool_version: str
    """Version of terraform used by the run."""

    autoapply: bool = False
    """Apply changes without review, read from the store."""

    working_dir: Path | None = None
    """Directory where terraform runs, read from the store."""

    template: str = ""
    """Template text for the resource type."""

    module: Module | None = None
    """Parameters used to render the template."""

    rendered: str = ""
    """Contents of the rendered terraform file."""

    plan_output: str = ""
    """Output of the plan stage."""

    changes_available: bool = False
    """Set once plan reports changes, never reset within a run."""

    result: str = ""
    """Output of the apply stage."""

    state: RunState = field(default=RunState.UNINITIALIZED)
    """Current stage of the run."""

    durations: dict[str, float] = field(default_factory=dict)
    """Seconds spent in each stage that was started, including failed ones."""


class RunSequencer:
    """Runs the init, plan and apply stages of a Run in order."""

    def __init__(
        self,
        run: Run,
        backend: Backend,
        config: ZealotConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize RunSequencer."""
        self._run = run
        self._backend = backend
        self._config = config
        self._http_client = http_client
        self._job = Namespace.job(backend, run.name, config.app_name)
        self._app = Namespace.app(backend, config.app_name)
        self._terraform: Terraform | None = None
        self._connected = False

    @property
    def run_state(self) -> Run:
        """Return the run driven by this sequencer."""
        return self._run

    @property
    def job(self) -> Namespace:
        """Return the namespace of the job."""
        return self._job

    def _require(self, state: RunState, stage: str) -> None:
        if self._run.state != state:
            raise SequenceError(
                f"Cannot {stage} run '{self._run.name}' in state {self._run.state}, "
                f"expected {state}"
            )

    @contextmanager
    def _stage(self, stage: str) -> Generator[None, None, None]:
        """Time a stage and move the run to FAILED if it raises."""
        start = perf_counter()
        _LOGGER.debug("[%s] > %s", self._run.name, stage)
        try:
            yield
        except Exception as err:
            self._run.state = RunState.FAILED
            self._run.durations[stage] = perf_counter() - start
            _LOGGER.debug(
                "[%s] < %s failed (%0.2fs): %s",
                self._run.name,
                stage,
                self._run.durations[stage],
                err,
            )
            raise
        self._run.durations[stage] = perf_counter() - start
        _LOGGER.debug(
            "[%s] < %s (%0.2fs)", self._run.name, stage, self._run.durations[stage]
        )

    async def _connect(self) -> None:
        if not self._connected:
            await self._job.connect()
            self._connected = True

    @property
    def terraform(self) -> Terraform:
        """Return the terraform runner, available once the run is initialized."""
        if self._terraform is None:
            raise SequenceError(f"Run '{self._run.name}' has not been initialized")
        return self._terraform

    async def init(self) -> None:
        """Resolve config, prepare the working directory and run `terraform init`."""
        self._require(RunState.UNINITIALIZED, "init")
        _LOGGER.info("[INIT] %s (%s)", self._run.name, self._run.resource_type)
        with self._stage("init"):
            await self._connect()
            job = await template.resolve(self._app, self._job, self._run.resource_type)
            self._run.template = job.template
            self._run.module = job.module
            self._run.working_dir = job.working_dir
            self._run.autoapply = job.autoapply

            try:
                job.working_dir.mkdir(mode=0o744, parents=True, exist_ok=True)
            except OSError as err:
                raise FatalError(
                    f"Unable to create working directory {job.working_dir}: {err}"
                ) from err

            self._terraform = Terraform(
                job.working_dir, self._config, http_client=self._http_client
            )
            await self._terraform.fetch()

            self._run.rendered = render.render(
                job.template, job.module, self._backend.address
            )
            _LOGGER.debug("Rendered terraform file:\n%s", self._run.rendered)
            await render.write_file(job.working_dir, self._run.rendered)

            await self._terraform.init()
        self._run.state = RunState.INITIALIZED

    async def plan(self) -> None:
        """Run `terraform plan` and persist its results."""
        self._require(RunState.INITIALIZED, "plan")
        _LOGGER.info("[PLAN] %s", self._run.name)
        with self._stage("plan"):
            result = await self.terraform.plan()
            self._run.plan_output = result.output
            if result.status == PlanStatus.CHANGES:
                self._run.changes_available = True
                await self._job.set_value(CHANGES_AVAILABLE_KEY, "true")
                await self._job.set_value(PLAN_TEXT_KEY, result.output)
                planfile = await self.terraform.read_plan()
                await self._job.set_value(PLAN_FILE_KEY, planfile)
            else:
                await self._job.set_value(PLAN_TEXT_KEY, result.output)
        self._run.state = RunState.PLANNED

    async def apply(self) -> bool:
        """Apply the saved plan if changes are available and autoapply is set.

        Returns True if terraform was invoked, or False if apply was skipped.
        """
        self._require(RunState.PLANNED, "apply")
        _LOGGER.info("[APPLY] %s", self._run.name)
        if not (self._run.changes_available and self._run.autoapply):
            _LOGGER.info(
                "No changes available or autoapply not set, apply skipped."
            )
            self._run.state = RunState.SKIPPED
            return False
        with self._stage("apply"):
            self._run.result = await self.terraform.apply()
        self._run.state = RunState.APPLIED
        return True

    async def run(self) -> RunState:
        """Run every stage in order while holding the resource lock.

        The lock is taken before init, so a run refused by the lock leaves the
        working directory of the run holding it untouched.
        """
        lock = (
            ResourceLock(
                self._job,
                f"{self._config.app_name}/{self._run.name}",
                ttl=self._config.lock_ttl,
            )
            if self._config.lock
            else nullcontext()
        )
        with self._stage("run"):
            await self._connect()
            async with lock:
                await self.init()
                await self.plan()
                await self.apply()
        return self._run.state
