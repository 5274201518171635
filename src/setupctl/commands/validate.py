"""validate — read-only checks run before committing the setup."""

from __future__ import annotations

import click

from setupctl.commands._base import SetupGroup
from setupctl.commands._context import AppContext


@click.group(
    cls=SetupGroup,
    examples="""\
  setupctl validate recipe-url https://example.com/recipe.yaml
  setupctl validate deploy-path /srv/fx/new-server
  setupctl validate data-folder /srv/fx/server-data
  setupctl validate cfg-file /srv/fx/server-data server.cfg""",
)
def validate() -> None:
    """Check setup input without saving anything."""


@validate.command(
    "recipe-url",
    examples="""\
  # Download and parse a deployment recipe
  setupctl validate recipe-url https://example.com/recipe.yaml

  # Machine-readable result
  setupctl --json validate recipe-url https://example.com/recipe.yaml""",
)
@click.argument("url")
@click.pass_obj
def recipe_url(app: AppContext, url: str) -> None:
    """Fetch a recipe from URL and show its name."""
    app.emit(app.service.validate_recipe_url(url))


@validate.command(
    "deploy-path",
    examples="""\
  # An empty or missing folder is accepted
  setupctl validate deploy-path /srv/fx/new-server""",
)
@click.argument("path")
@click.pass_obj
def deploy_path(app: AppContext, path: str) -> None:
    """Check that PATH can receive a new deployment."""
    app.emit(app.service.validate_local_deploy_path(path))


@validate.command(
    "data-folder",
    examples="""\
  # Must contain a resources/ folder
  setupctl validate data-folder /srv/fx/server-data

  # Show unreadable folders on failure
  setupctl -v validate data-folder /srv/fx""",
)
@click.argument("path")
@click.pass_obj
def data_folder(app: AppContext, path: str) -> None:
    """Check that PATH is a server data folder."""
    app.emit(app.service.validate_local_data_folder(path))


@validate.command(
    "cfg-file",
    examples="""\
  # Relative to the data folder
  setupctl validate cfg-file /srv/fx/server-data server.cfg

  # Absolute path
  setupctl validate cfg-file /srv/fx/server-data /srv/fx/configs/main.cfg""",
)
@click.argument("data_folder_path", metavar="DATA_FOLDER")
@click.argument("cfg_file")
@click.pass_obj
def cfg_file(app: AppContext, data_folder_path: str, cfg_file: str) -> None:
    """Check that CFG_FILE is readable and declares the listening port."""
    app.emit(app.service.validate_cfg_file(data_folder_path, cfg_file))
