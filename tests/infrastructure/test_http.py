"""Tests for RecipeFetcher — timeouts, content checks, error mapping."""

from __future__ import annotations

import time
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
import requests

from setupctl.domain.recipe import RecipeFormatError
from setupctl.infrastructure.http import (
    NOT_TEXT_ERROR,
    RECIPE_TIMEOUT,
    RecipeFetcher,
    RecipeNetworkError,
)
from tests.conftest import VALID_RECIPE

URL = "https://example.com/recipe.yaml"


def _response(
    body: bytes, *, status: int = 200, content_type: str = "text/plain"
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body
    response.headers["Content-Type"] = content_type
    response.url = URL
    response.reason = "Not Found" if status == 404 else "OK"
    response._content_consumed = True
    return response


def _session(result: requests.Response | Exception) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    if isinstance(result, Exception):
        session.get.side_effect = result
    else:
        session.get.return_value = result
    return session


class TestFetch:
    def test_returns_text_body(self) -> None:
        session = _session(_response(VALID_RECIPE.encode()))
        assert RecipeFetcher(session).fetch(URL) == VALID_RECIPE

    def test_uses_timeout(self) -> None:
        session = _session(_response(b"x"))
        RecipeFetcher(session).fetch(f"  {URL}  ")
        args, kwargs = session.get.call_args
        assert args == (URL,)
        assert kwargs["timeout"] == RECIPE_TIMEOUT
        assert kwargs["stream"] is True

    def test_each_call_fetches_again(self) -> None:
        session = _session(_response(b"x"))
        fetcher = RecipeFetcher(session)
        fetcher.fetch(URL)
        fetcher.fetch(URL)
        assert session.get.call_count == 2

    def test_timeout_is_network_error(self) -> None:
        session = _session(requests.Timeout("slow"))
        with pytest.raises(RecipeNetworkError, match="timed out after 4.5 seconds"):
            RecipeFetcher(session).fetch(URL)

    def test_http_status_is_network_error(self) -> None:
        session = _session(_response(b"missing", status=404))
        with pytest.raises(RecipeNetworkError, match="status code 404"):
            RecipeFetcher(session).fetch(URL)

    def test_connection_error(self) -> None:
        session = _session(requests.ConnectionError("refused"))
        with pytest.raises(RecipeNetworkError, match="Connection failed"):
            RecipeFetcher(session).fetch(URL)

    def test_invalid_url(self) -> None:
        session = _session(requests.exceptions.MissingSchema("no scheme"))
        with pytest.raises(RecipeNetworkError, match="Invalid URL"):
            RecipeFetcher(session).fetch("example.com/recipe")

    def test_json_content_is_not_text(self) -> None:
        session = _session(_response(b'{"a": 1}', content_type="application/json"))
        with pytest.raises(RecipeFormatError, match=NOT_TEXT_ERROR):
            RecipeFetcher(session).fetch(URL)

    def test_binary_body_is_not_text(self) -> None:
        session = _session(_response(b"\xff\xfe\x00\x01", content_type=""))
        with pytest.raises(RecipeFormatError, match=NOT_TEXT_ERROR):
            RecipeFetcher(session).fetch(URL)

    def test_yaml_media_type_accepted(self) -> None:
        session = _session(_response(b"a: 1", content_type="application/x-yaml; charset=utf-8"))
        assert RecipeFetcher(session).fetch(URL) == "a: 1"

    def test_json_body_served_as_text_is_rejected(self) -> None:
        body = b'{"$engine": 2, "name": "j", "tasks": [{"action": "noop"}]}'
        session = _session(_response(body, content_type="text/plain; charset=utf-8"))
        with pytest.raises(RecipeFormatError, match=NOT_TEXT_ERROR):
            RecipeFetcher(session).fetch(URL)

    def test_bare_json_number_is_rejected(self) -> None:
        session = _session(_response(b"42"))
        with pytest.raises(RecipeFormatError, match=NOT_TEXT_ERROR):
            RecipeFetcher(session).fetch(URL)


class TestDeadline:
    def test_slow_connect_is_bounded(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = lambda *args, **kwargs: time.sleep(2)
        started = time.monotonic()
        with pytest.raises(RecipeNetworkError, match="timed out after 0.2 seconds"):
            RecipeFetcher(session, timeout=0.2).fetch(URL)
        assert time.monotonic() - started < 1.5

    def test_trickling_body_is_bounded(self) -> None:
        response = _response(b"")

        def _trickle(chunk_size: int) -> Iterator[bytes]:
            for _ in range(20):
                time.sleep(0.1)
                yield b"a"

        response.iter_content = _trickle  # type: ignore[method-assign]
        started = time.monotonic()
        with pytest.raises(RecipeNetworkError, match="timed out after 0.3 seconds"):
            RecipeFetcher(_session(response), timeout=0.3).fetch(URL)
        assert time.monotonic() - started < 1.5


class TestFetchRecipe:
    def test_parses_recipe(self) -> None:
        session = _session(_response(VALID_RECIPE.encode()))
        recipe = RecipeFetcher(session).fetch_recipe(URL)
        assert recipe.name == "PlumeESX2"

    def test_bad_recipe_is_format_error(self) -> None:
        session = _session(_response(b"$engine: 9\nname: x\n"))
        with pytest.raises(RecipeFormatError, match="unsupported"):
            RecipeFetcher(session).fetch_recipe(URL)
