"""Zealot template action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from zealot.exceptions import InputException
from zealot.render import DEFAULT_TEMPLATE
from zealot.store import Namespace
from zealot.template import template_key

from . import options

_LOGGER = logging.getLogger(__name__)


class TemplateAction:
    """Zealot template action, stores the template of a resource type."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "template",
                help="Store the template of a resource type",
                description="""Writes a template to consul for the resource type.
                    Without --template-file the built in local_file template is
                    used.""",
            ),
        )
        args.add_argument(
            "--resource",
            "-r",
            required=True,
            help="Type of resource the template renders",
        )
        args.add_argument(
            "--template-file",
            type=pathlib.Path,
            default=None,
            help="File with the template text",
        )
        options.add_config_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        resource: str,
        template_file: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        content = DEFAULT_TEMPLATE
        if template_file is not None:
            try:
                content = template_file.read_text()
            except OSError as err:
                raise InputException(
                    f"Unable to read template file {template_file}: {err}"
                ) from err
        config = await options.build_config(**kwargs)
        backend = options.build_backend(config)
        app = Namespace.app(backend, config.app_name)
        try:
            await backend.connect()
            await app.set_value(template_key(resource), content)
        finally:
            await backend.close()
        print(f"Stored template {app.key(template_key(resource))}")
