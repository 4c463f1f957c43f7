"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from ghostpub.cli.commands import (
    add_properties_cmd,
    calendar_cmd,
    convert_cmd,
    forget_cmd,
    init_cmd,
    new_post_cmd,
    sync_cmd,
    test_connection_cmd,
    watch_cmd,
)
from ghostpub.logging_config import setup_logging


app = typer.Typer(name="ghostpub", no_args_is_help=True, help="Publish Markdown notes to a Ghost site")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    ):
    setup_logging(logging.DEBUG if verbose else logging.INFO)


app.command(name="sync")(sync_cmd)
app.command(name="watch")(watch_cmd)
app.command(name="test-connection")(test_connection_cmd)
app.command(name="new-post")(new_post_cmd)
app.command(name="add-properties")(add_properties_cmd)
app.command(name="convert")(convert_cmd)
app.command(name="calendar")(calendar_cmd)
app.command(name="init")(init_cmd)
app.command(name="forget")(forget_cmd)
