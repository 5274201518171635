"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Service messages are written for the setup web page and may carry HTML
emphasis (``<br>``, ``<code>``, ``<strong>``); :func:`plain_text` turns
them into terminal text before rendering.
"""

from __future__ import annotations

import json as _json
import re
from typing import TYPE_CHECKING, Any

from rich.text import Text

from setupctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from setupctl.services.result import ServiceResult

_BREAK_RE = re.compile(r"\s*<br\s*/?>\s*", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[a-zA-Z][^>]*>")


def plain_text(message: str) -> str:
    """Drop HTML markup from a service message."""
    text = _BREAK_RE.sub("\n", message)
    return _TAG_RE.sub("", text).strip()


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = plain_text(result.error.message) if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="setup.ok")
    op = Text(f"  {result.op}", style="setup.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any, style: str = "") -> None:
    console.print(Text.assemble((f"  {key}: ", "setup.key"), (str(value), style)))


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(Text(f"    {k}: {v}"))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = plain_text(err.message) if err else "Unknown error"
    label = Text("ERROR", style="setup.error")
    op = Text(f"  {result.op}", style="setup.op")
    console.print(label, op, Text(" — "), Text(msg))

    if err is None:
        return
    suggestion = err.detail.get("suggestion")
    if suggestion:
        _field(console, "suggestion", suggestion, "setup.suggestion")
    if verbose:
        details = {k: v for k, v in err.detail.items() if k != "suggestion"}
        if details:
            console.print(Text("  detail:", style="dim"))
            for k, v in details.items():
                console.print(Text(f"    {k}: {v}"))


# ── Success renderers ─────────────────────────────────────────────────


def _render_recipe(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a validated recipe summary."""
    _status_line(console, result)
    _field(console, "name", result.data.get("name", ""), "setup.name")
    for key in ("author", "description"):
        if result.data.get(key):
            _field(console, key, result.data[key])
    tasks = result.data.get("tasks")
    if tasks is not None:
        _field(console, "tasks", tasks)
    if verbose:
        _render_meta(console, result)


def _render_paths(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render path validation and save results."""
    _status_line(console, result)
    for key, value in result.data.items():
        if key == "message":
            _field(console, key, plain_text(str(value)))
        elif key.endswith(("path", "folder", "file")):
            _field(console, key, value, "setup.path")
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "validate_recipe_url": _render_recipe,
    "validate_deploy_path": _render_paths,
    "validate_data_folder": _render_paths,
    "validate_cfg_file": _render_paths,
    "save_local": _render_paths,
    "save_deploy": _render_paths,
}
