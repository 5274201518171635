"""Tests for MCP tool and resource _impl functions (no mcp package needed)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from setupctl.mcp.resources import register_resources, status_impl
from setupctl.mcp.server import create_server
from setupctl.mcp.tools import (
    register_tools,
    setup_action_impl,
    validate_cfg_file_impl,
    validate_data_folder_impl,
    validate_recipe_url_impl,
)
from setupctl.services.setup import Actor, SetupService


class _FakeServer:
    """Collects functions registered through FastMCP-style decorators."""

    def __init__(self) -> None:
        self.tools: dict[str, Any] = {}
        self.resources: dict[str, Any] = {}

    def tool(self) -> Any:
        def _register(fn: Any) -> Any:
            self.tools[fn.__name__] = fn
            return fn

        return _register

    def resource(self, uri: str) -> Any:
        def _register(fn: Any) -> Any:
            self.resources[uri] = fn
            return fn

        return _register


class TestToolImpls:
    def test_setup_action_payload(self, service: SetupService, admin: Actor) -> None:
        resp = setup_action_impl(service, admin, "validateLocalDataFolder", {})
        assert resp == {
            "status": 400,
            "code": "BAD_REQUEST",
            "success": False,
            "message": "Invalid Request - missing parameters",
        }

    def test_recipe_url(self, service: SetupService) -> None:
        resp = validate_recipe_url_impl(service, "https://example.com/recipe.yaml")
        assert resp["ok"] is True
        assert resp["data"]["name"] == "PlumeESX2"

    def test_data_folder_error_includes_detail(
        self, service: SetupService, server_data: Path
    ) -> None:
        resp = validate_data_folder_impl(service, str(server_data / "resources" / "maps"))
        assert resp["ok"] is False
        assert resp["error"]["code"] == "RECOVERABLE"
        assert resp["error"]["detail"]["suggestion"] == f"{server_data}/"

    def test_cfg_file(self, service: SetupService, server_data: Path) -> None:
        resp = validate_cfg_file_impl(service, str(server_data), str(server_data / "server.cfg"))
        assert resp["data"]["port"] == 30120


class TestRegistration:
    def test_register_tools(self, service: SetupService, admin: Actor) -> None:
        server = _FakeServer()
        register_tools(server, service, admin)
        assert set(server.tools) == {
            "setup_action",
            "validate_recipe_url",
            "validate_deploy_path",
            "validate_data_folder",
            "validate_cfg_file",
        }
        resp = server.tools["setup_action"]("format")
        assert resp["message"] == "Unknown setup action."

    def test_status_resource(self, service: SetupService) -> None:
        server = _FakeServer()
        register_resources(server, service)
        body = server.resources["setupctl://status"]()
        assert json.loads(body) == status_impl(service) == {"configured": False}


class TestCreateServer:
    def test_requires_extra(self) -> None:
        with patch("setupctl.mcp.server.mcp_available", False), pytest.raises(RuntimeError):
            create_server()
