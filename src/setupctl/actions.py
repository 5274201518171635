"""Setup action surface: string-tagged requests in, response payloads out.

This is the adapter a web route (or the MCP tool) calls with the raw
request body.  It owns request-shape validation, the permission check,
and the translation of ServiceResult into the setup page's payload
``{success, message?, suggestion?, name?, refresh?}``.

INVARIANT: Only a malformed request yields status 400.  Every other
failure is a normal response with ``success: false``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from setupctl.services.result import ErrorCode, ServiceResult
from setupctl.services.setup import ALREADY_CONFIGURED_MESSAGE

if TYPE_CHECKING:
    from collections.abc import Callable

    from setupctl.services.setup import Actor, SetupService

INVALID_REQUEST = "Invalid Request"
MISSING_PARAMETERS = "Invalid Request - missing parameters"
PERMISSION_MESSAGE = "You need to be the admin master to use the setup page."
UNKNOWN_ACTION_MESSAGE = "Unknown setup action."
REQUIRED_PERMISSION = "all_permissions"

T = TypeVar("T", bound=BaseModel)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class _Body(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class RecipeURLBody(_Body):
    recipe_url: str = Field(alias="recipeURL")


class DeployPathBody(_Body):
    deploy_path: str = Field(alias="deployPath")


class DataFolderBody(_Body):
    data_folder: str = Field(alias="dataFolder")


class CfgFileBody(_Body):
    data_folder: str = Field(alias="dataFolder")
    cfg_file: str = Field(alias="cfgFile")


class SaveLocalBody(_Body):
    name: str
    data_folder: str = Field(alias="dataFolder")
    cfg_file: str = Field(alias="cfgFile")


class SaveDeployBody(_Body):
    name: str
    recipe_url: str = Field(alias="recipeURL")
    target_path: str = Field(alias="targetPath")


class BadRequestError(ValueError):
    """The request is missing required fields."""


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class ActionResponse(BaseModel):
    """Response for one setup action.

    ``status`` is the transport status; it is 400 only for malformed
    requests.  ``code`` is the error class.  Neither is part of the payload.
    """

    model_config = {"frozen": True}

    status: int = 200
    code: str | None = None
    success: bool
    message: str | None = None
    suggestion: str | None = None
    name: str | None = None
    refresh: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"status", "code"}, exclude_none=True)

    @classmethod
    def bad_request(cls, message: str = MISSING_PARAMETERS) -> ActionResponse:
        return cls(status=400, code=ErrorCode.BAD_REQUEST.value, success=False, message=message)

    @classmethod
    def from_result(cls, result: ServiceResult) -> ActionResponse:
        """Translate a ServiceResult into the setup page payload."""
        if result.ok:
            return cls(
                success=True,
                name=result.data.get("name"),
                message=result.data.get("message"),
            )

        error = result.error
        if error is None:
            return cls(success=False, message="Unknown error")
        if error.code == ErrorCode.ALREADY_CONFIGURED:
            return cls(
                code=error.code, success=False, refresh=True, message=ALREADY_CONFIGURED_MESSAGE
            )
        return cls(
            code=error.code,
            success=False,
            message=error.message,
            suggestion=error.detail.get("suggestion"),
        )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _parse(model_cls: type[T], body: dict[str, Any]) -> T:
    try:
        return model_cls.model_validate(body)
    except ValidationError as exc:
        raise BadRequestError(MISSING_PARAMETERS) from exc


def _validate_recipe_url(svc: SetupService, body: dict[str, Any], _actor: Actor) -> ServiceResult:
    return svc.validate_recipe_url(_parse(RecipeURLBody, body).recipe_url)


def _validate_deploy_path(svc: SetupService, body: dict[str, Any], _actor: Actor) -> ServiceResult:
    return svc.validate_local_deploy_path(_parse(DeployPathBody, body).deploy_path)


def _validate_data_folder(svc: SetupService, body: dict[str, Any], _actor: Actor) -> ServiceResult:
    return svc.validate_local_data_folder(_parse(DataFolderBody, body).data_folder)


def _validate_cfg_file(svc: SetupService, body: dict[str, Any], _actor: Actor) -> ServiceResult:
    req = _parse(CfgFileBody, body)
    return svc.validate_cfg_file(req.data_folder, req.cfg_file)


def _save(svc: SetupService, body: dict[str, Any], actor: Actor) -> ServiceResult:
    if str(body.get("template", "")).lower() == "true":
        deploy = _parse(SaveDeployBody, body)
        return svc.save_deploy(deploy.name, deploy.recipe_url, deploy.target_path, actor=actor)
    local = _parse(SaveLocalBody, body)
    return svc.save_local(local.name, local.data_folder, local.cfg_file, actor=actor)


_HANDLERS: dict[str, Callable[[SetupService, dict[str, Any], Actor], ServiceResult]] = {
    "validateRecipeURL": _validate_recipe_url,
    "validateLocalDeployPath": _validate_deploy_path,
    "validateLocalDataFolder": _validate_data_folder,
    "validateCFGFile": _validate_cfg_file,
    "save": _save,
}

SUPPORTED_ACTIONS: tuple[str, ...] = tuple(_HANDLERS)


def handle_action(
    service: SetupService,
    action: str | None,
    body: dict[str, Any] | None,
    *,
    actor: Actor,
) -> ActionResponse:
    """Run one setup *action* with the request *body* on behalf of *actor*.

    Checks, in order: action present, permission, setup gate, known
    action, then the action's own required fields.
    """
    if not action:
        return ActionResponse.bad_request(INVALID_REQUEST)

    if not actor.has_permission(REQUIRED_PERMISSION):
        return ActionResponse(
            code=ErrorCode.PERMISSION_DENIED.value, success=False, message=PERMISSION_MESSAGE
        )

    if service.is_configured:
        return ActionResponse.from_result(
            ServiceResult.failure(action, ErrorCode.ALREADY_CONFIGURED, ALREADY_CONFIGURED_MESSAGE)
        )

    handler = _HANDLERS.get(action)
    if handler is None:
        return ActionResponse(
            code=ErrorCode.UNKNOWN_ACTION.value, success=False, message=UNKNOWN_ACTION_MESSAGE
        )

    try:
        result = handler(service, body or {}, actor)
    except BadRequestError as exc:
        return ActionResponse.bad_request(str(exc))
    return ActionResponse.from_result(result)
