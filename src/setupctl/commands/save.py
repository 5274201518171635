"""save — commit the one-time setup."""

from __future__ import annotations

import click

from setupctl.commands._base import SetupGroup
from setupctl.commands._context import AppContext


@click.group(
    cls=SetupGroup,
    examples="""\
  setupctl save local --name "My Server" --data-folder /srv/fx/server-data --cfg-file server.cfg
  setupctl save deploy --name "My Server" --recipe-url https://example.com/recipe.yaml \\
      --target-path /srv/fx/new-server""",
)
def save() -> None:
    """Save the setup. Only the first successful save is accepted."""


@save.command(
    "local",
    examples="""\
  # Use an existing server data folder and start the server
  setupctl save local --name "My Server" --data-folder /srv/fx/server-data --cfg-file server.cfg""",
)
@click.option("--name", required=True, help="Server name.")
@click.option("--data-folder", required=True, help="Existing server data folder.")
@click.option("--cfg-file", required=True, help="CFG file, absolute or relative to the folder.")
@click.pass_obj
def save_local(app: AppContext, name: str, data_folder: str, cfg_file: str) -> None:
    """Save an existing server data folder and start the server."""
    app.emit(app.service.save_local(name, data_folder, cfg_file, actor=app.actor))


@save.command(
    "deploy",
    examples="""\
  # Prepare a deployment from a remote recipe
  setupctl save deploy --name "My Server" \\
      --recipe-url https://example.com/recipe.yaml --target-path /srv/fx/new-server""",
)
@click.option("--name", required=True, help="Server name.")
@click.option("--recipe-url", required=True, help="URL of the deployment recipe.")
@click.option("--target-path", required=True, help="Folder the recipe deploys into.")
@click.pass_obj
def save_deploy(app: AppContext, name: str, recipe_url: str, target_path: str) -> None:
    """Save the server name and start a recipe deployment."""
    app.emit(app.service.save_deploy(name, recipe_url, target_path, actor=app.actor))
