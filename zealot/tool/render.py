"""Zealot render action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from zealot import render, template
from zealot.store import Namespace

from . import options

_LOGGER = logging.getLogger(__name__)


class RenderAction:
    """Zealot render action, prints the terraform file without running terraform."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "render",
                help="Render the terraform file of a job",
                description="""Reads the job config and resource template from
                    consul and prints the rendered terraform file.""",
            ),
        )
        options.add_job_flags(args)
        options.add_config_flags(args)
        args.add_argument(
            "--output-file",
            type=str,
            default="/dev/stdout",
            help="Output file for the results of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        name: str,
        resource: str,
        output_file: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = await options.build_config(**kwargs)
        backend = options.build_backend(config)
        job = Namespace.job(backend, name, config.app_name)
        app = Namespace.app(backend, config.app_name)
        try:
            await backend.connect()
            resolved = await template.resolve(app, job, resource)
        finally:
            await backend.close()
        content = render.render(resolved.template, resolved.module, backend.address)
        with open(output_file, "w") as file:
            print(content, file=file, end="")
