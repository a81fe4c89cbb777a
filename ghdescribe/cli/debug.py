import logging

import click

from .utils.logging import configure_logging


def _debug_option() -> click.Option:
    return click.Option(
        ["--debug/--no-debug"],
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Enable debug logging (same as --log-level debug)",
    )


def add_debug_option(cmd: click.Command) -> click.Command:
    """Put a --debug/--no-debug flag in front of the command's own options."""
    if not any(param.name == "debug" for param in cmd.params):
        cmd.params.insert(0, _debug_option())
    return cmd


def _set_debug(ctx: click.Context, param: click.Parameter, value: bool) -> bool:
    """
    Record the flag on the root context and switch logging to DEBUG.

    The flag can be given after any command of the chain. ``--no-debug`` never
    lowers a level chosen elsewhere, so the group's --log-level still applies.
    """
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    root_ctx.obj.setdefault("DEBUG", False)

    if value:
        root_ctx.obj["DEBUG"] = True
        configure_logging(logging.DEBUG)

    return root_ctx.obj["DEBUG"]
