"""Recovery suggestions for almost-correct user paths."""

from __future__ import annotations

from pydantic import BaseModel

_RECOVERY_TEMPLATE = (
    "The path provided is invalid. <br>\n"
    "But it looks like <code>{path}</code> is correct. <br>\n"
    "Do you want to use it instead?"
)


class RecoverySuggestion(BaseModel):
    """A verified alternative path offered to the user for confirmation.

    INVARIANT: *suggested_path* passed the same existence check that the
    original input failed.  Suggestions are never applied automatically.
    """

    model_config = {"frozen": True}

    message: str
    suggested_path: str

    @classmethod
    def for_path(cls, path: str) -> RecoverySuggestion:
        return cls(message=_RECOVERY_TEMPLATE.format(path=path), suggested_path=path)
