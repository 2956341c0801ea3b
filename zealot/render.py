"""Library for rendering the terraform file of a job.

Templates are plain text with `{{ Placeholder }}` substitutions for the
values in `Module.template_values`. Only substitutions are supported: block
tags such as `{% if %}`, filters and expressions are rejected. An unknown
placeholder or a malformed template raises `RenderException`.

```python
from zealot import render

text = render.render(render.DEFAULT_TEMPLATE, module, "localhost:8500")
path = await render.write_file(working_dir, text)
```
"""

import logging
from pathlib import Path

import aiofiles
import jinja2
from jinja2 import nodes

from .exceptions import RenderException
from .manifest import Module

__all__ = [
    "DEFAULT_TEMPLATE",
    "render",
    "write_file",
]

_LOGGER = logging.getLogger(__name__)

TERRAFORM_FILE = "main.tf"

DEFAULT_TEMPLATE = """\
terraform {
  backend "consul" {
    address = "{{ Address }}"
    path    = "{{ StatePath }}"
  }
}

resource "local_file" "{{ ResourceName }}" {
  content  = "{{ Content }}"
  filename = "{{ Filename }}"
}
"""

_ENV = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def _check_substitutions(tree: nodes.Template) -> None:
    """Reject anything other than text and `{{ Name }}` substitutions."""
    for node in tree.body:
        children = node.nodes if isinstance(node, nodes.Output) else [node]
        for child in children:
            if not isinstance(child, (nodes.TemplateData, nodes.Name)):
                raise jinja2.TemplateSyntaxError(
                    "only {{ Placeholder }} substitutions are supported, "
                    f"found {type(child).__name__.lower()}",
                    child.lineno,
                )


def render(template: str, module: Module, address: str) -> str:
    """Expand the template with the module parameters."""
    try:
        tree = _ENV.parse(template)
        _check_substitutions(tree)
        return _ENV.from_string(tree).render(**module.template_values(address))
    except jinja2.TemplateError as err:
        _LOGGER.error("Unable to render template for %s: %s", module.resource_name, err)
        raise RenderException(
            f"Unable to render template for {module.resource_name}: {err}"
        ) from err


async def write_file(working_dir: Path, content: str) -> Path:
    """Write the rendered terraform file into the working directory."""
    path = working_dir / TERRAFORM_FILE
    try:
        async with aiofiles.open(path, mode="w") as tf_file:
            await tf_file.write(content)
    except OSError as err:
        raise RenderException(f"Unable to write {path}: {err}") from err
    _LOGGER.debug("Wrote %s", path)
    return path
