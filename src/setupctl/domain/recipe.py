"""Deployment recipe model and parser.

A recipe is a YAML document describing how to build a server-data folder
from scratch.  Only structure is validated here; executing the tasks is the
deployer's job.

Example::

    $engine: 2
    name: PlumeESX2
    author: Tabarra
    description: A full-featured PlumeESX2 server.
    variables:
      dbHost: localhost
    tasks:
      - action: download_github
        src: https://github.com/citizenfx/cfx-server-data
        dest: ./
"""

from __future__ import annotations

from io import StringIO
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

SUPPORTED_ENGINES: frozenset[int] = frozenset({2})


class RecipeFormatError(ValueError):
    """The recipe text is not a structurally valid recipe."""


class RecipeTask(BaseModel):
    """One deployment step.  Extra keys are the action's arguments."""

    model_config = ConfigDict(frozen=True, extra="allow")

    action: str


class Recipe(BaseModel):
    """Parsed recipe metadata plus its task list."""

    model_config = {"frozen": True}

    engine: int
    name: str
    author: str = ""
    description: str = ""
    min_fx_version: int | None = None
    onesync: str | None = None
    steam_required: bool = False
    variables: dict[str, Any] = Field(default_factory=dict)
    tasks: list[RecipeTask] = Field(default_factory=list)
    raw: str = Field(default="", repr=False)


def _load_yaml(text: str) -> Any:
    try:
        return YAML(typ="safe").load(StringIO(text))
    except YAMLError as exc:
        msg = f"Failed to parse recipe YAML: {exc}"
        raise RecipeFormatError(msg) from exc


def _optional_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        msg = f"{key} must be a string"
        raise RecipeFormatError(msg)
    return value


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def _parse_tasks(raw_tasks: Any) -> list[RecipeTask]:
    if not isinstance(raw_tasks, list) or not raw_tasks:
        raise RecipeFormatError("tasks must be a non-empty list")

    tasks: list[RecipeTask] = []
    for index, raw_task in enumerate(raw_tasks):
        if not isinstance(raw_task, dict):
            msg = f"task #{index + 1} must be a mapping"
            raise RecipeFormatError(msg)
        action = raw_task.get("action")
        if not isinstance(action, str) or not action:
            msg = f"task #{index + 1} has no action"
            raise RecipeFormatError(msg)
        try:
            tasks.append(RecipeTask.model_validate(raw_task))
        except ValidationError as exc:
            msg = f"task #{index + 1} is invalid: {_first_error(exc)}"
            raise RecipeFormatError(msg) from exc
    return tasks


def parse_recipe(text: str) -> Recipe:
    """Validate *text* as a recipe and return the parsed :class:`Recipe`.

    Raises :class:`RecipeFormatError` with a human-readable diagnostic.
    """
    data = _load_yaml(text)
    if not isinstance(data, dict):
        raise RecipeFormatError("invalid recipe file (expected a YAML mapping)")

    engine = data.get("$engine")
    if not isinstance(engine, int) or isinstance(engine, bool):
        raise RecipeFormatError("$engine must be a number")
    if engine not in SUPPORTED_ENGINES:
        msg = f"unsupported '$engine' version {engine}"
        raise RecipeFormatError(msg)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise RecipeFormatError("missing or invalid name")

    min_fx = data.get("$minFxVersion")
    if min_fx is not None and (not isinstance(min_fx, int) or isinstance(min_fx, bool)):
        raise RecipeFormatError("$minFxVersion must be a number")

    onesync = data.get("$onesync")
    if onesync is not None and onesync not in ("off", "legacy", "on"):
        raise RecipeFormatError("$onesync must be one of: off, legacy, on")

    steam_required = data.get("$steamRequired", False)
    if not isinstance(steam_required, bool):
        raise RecipeFormatError("$steamRequired must be a boolean")

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        raise RecipeFormatError("variables must be a mapping")

    author = _optional_str(data, "author")
    description = _optional_str(data, "description")
    tasks = _parse_tasks(data.get("tasks"))
    try:
        return Recipe(
            engine=engine,
            name=name.strip(),
            author=author,
            description=description,
            min_fx_version=min_fx,
            onesync=onesync,
            steam_required=steam_required,
            variables=dict(variables),
            tasks=tasks,
            raw=text,
        )
    except ValidationError as exc:
        msg = f"invalid recipe field {_first_error(exc)}"
        raise RecipeFormatError(msg) from exc
