"""Representation of the parameters of a provisioned resource."""

from dataclasses import dataclass
from typing import Any

from mashumaro import DataClassDictMixin

from .store import Namespace

__all__ = [
    "Module",
]


@dataclass
class Module(DataClassDictMixin):
    """Resource specific parameters used to render the terraform file."""

    resource_name: str
    """Name of the terraform resource."""

    content: str
    """Content of the managed file."""

    filename: str
    """Path of the managed file."""

    state_path: str
    """Key where terraform stores remote state for this resource."""

    @classmethod
    def for_namespace(
        cls, namespace: Namespace, resource_name: str, content: str, filename: str
    ) -> "Module":
        """Build a Module whose state path is derived from the job namespace."""
        return cls(
            resource_name=resource_name,
            content=content,
            filename=filename,
            state_path=namespace.state_path,
        )

    def template_values(self, address: str) -> dict[str, Any]:
        """Return the placeholders available to the template."""
        return {
            "Address": address,
            "StatePath": self.state_path,
            "ResourceName": self.resource_name,
            "Content": self.content,
            "Filename": self.filename,
        }
