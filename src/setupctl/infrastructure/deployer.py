"""Deployment target checks and the deployer session object.

The deployer is created when the user commits to a recipe.  It holds the
parsed recipe and the target folder, starting in the ``review`` step so
the user can inspect the recipe before any task runs.  Running the tasks
is done by the process that takes over after setup.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from setupctl.domain.paths import SPACE_ERROR, InvalidPathError
from setupctl.domain.recipe import Recipe, parse_recipe

logger = logging.getLogger(__name__)

# Placeholder file some hosting panels drop into otherwise-empty folders.
_IGNORED_ENTRIES = frozenset({".empty"})


class TargetPathError(Exception):
    """The deployment target folder cannot be used."""


def validate_target_path(deploy_path: str) -> str:
    """Check that *deploy_path* is usable as a deployment destination.

    An existing folder must be empty.  A missing folder is created and
    removed again to prove it is writable.  Returns a short status message;
    raises :class:`TargetPathError` (or :class:`InvalidPathError` for spaces).
    """
    if " " in deploy_path:
        raise InvalidPathError(SPACE_ERROR)

    target = Path(deploy_path)
    try:
        if target.exists():
            if not target.is_dir():
                raise TargetPathError("This path is a file, not a folder!")
            if any(entry.name not in _IGNORED_ENTRIES for entry in target.iterdir()):
                raise TargetPathError("This folder is not empty!")
            return "Exists & is empty."

        created_root = _first_missing_ancestor(target)
        target.mkdir(parents=True)
        shutil.rmtree(created_root)
    except OSError as exc:
        msg = f"Failed to create or check path: {exc.strerror or exc}"
        raise TargetPathError(msg) from exc
    return "Path didn't exist and it was created successfully."


def _first_missing_ancestor(target: Path) -> Path:
    """Topmost ancestor of *target* (inclusive) that does not exist yet."""
    missing = target
    for parent in target.parents:
        if parent.exists():
            break
        missing = parent
    return missing


class DeployerStep(StrEnum):
    REVIEW = "review"
    INPUT = "input"
    RUN = "run"
    CONFIGURE = "configure"


@dataclass
class Deployer:
    """A pending recipe deployment bound to a target folder.

    Raises :class:`~setupctl.domain.recipe.RecipeFormatError` at
    construction when *recipe_source* is not a valid recipe.
    """

    recipe_source: str
    target_path: str
    recipe: Recipe = field(init=False)
    step: DeployerStep = DeployerStep.REVIEW
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def __post_init__(self) -> None:
        self.recipe = parse_recipe(self.recipe_source)
        logger.debug("Deployer ready for %r -> %s", self.recipe.name, self.target_path)
