"""Zealot run action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from zealot.sequence import Run, RunSequencer

from . import options

_LOGGER = logging.getLogger(__name__)


class RunAction:
    """Zealot run action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "run",
                help="Provision a named resource with terraform",
                description="""Reads the job config and resource template from
                    consul, renders main.tf into the job working directory and
                    runs terraform init, plan and (if autoapply is set and there
                    are changes) apply. Plan results are written back to consul.""",
            ),
        )
        options.add_job_flags(args)
        options.add_config_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        name: str,
        resource: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = await options.build_config(**kwargs)
        backend = options.build_backend(config)
        run = Run(
            name=name,
            resource_type=resource,
            workspace=config.workspace,
            tool_version=config.terraform_version,
        )
        sequencer = RunSequencer(run, backend, config)
        try:
            state = await sequencer.run()
        finally:
            await backend.close()
        print(f"{name}: {state}")
