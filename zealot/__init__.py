"""
zealot provisions a single named resource with terraform, using consul as
the source of configuration and the destination of run results.

A run reads the job config from `jobconfig/zealot/<name>/` and the resource
template from `appconfig/zealot/<resource type>/template`, renders `main.tf`
into the job working directory, then runs terraform init, plan and apply.
"""

__all__ = [
    "command",
    "config",
    "exceptions",
    "render",
    "sequence",
    "store",
    "template",
    "terraform",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
