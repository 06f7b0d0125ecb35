"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsite.cli.commands import build_cmd, check_cmd, list_cmd, new_cmd, tags_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Dated Markdown posts to a static site")

app.command(name="build")(build_cmd)
app.command(name="check")(check_cmd)
app.command(name="list")(list_cmd)
app.command(name="tags")(tags_cmd)
app.command(name="new")(new_cmd)
