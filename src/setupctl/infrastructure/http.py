"""Remote recipe acquisition over HTTP.

One GET per call, bounded by a hard deadline that covers connecting and
reading the whole body.  No retries, no caching: two calls with the same
URL perform two independent fetches.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future

import requests

from setupctl import __version__
from setupctl.domain.recipe import Recipe, RecipeFormatError, parse_recipe

logger = logging.getLogger(__name__)

RECIPE_TIMEOUT = 4.5  # seconds
NOT_TEXT_ERROR = "This URL did not return a string."

_CHUNK_SIZE = 1024

# Media types accepted besides text/*.  JSON bodies are rejected.
_TEXT_LIKE_TYPES = frozenset(
    {
        "application/yaml",
        "application/x-yaml",
    }
)


class RecipeNetworkError(Exception):
    """The recipe URL could not be fetched (timeout, connection, HTTP status)."""


def _is_text_response(response: requests.Response) -> bool:
    content_type = response.headers.get("Content-Type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type:
        return True
    return media_type.startswith("text/") or media_type in _TEXT_LIKE_TYPES


def _is_json_document(text: str) -> bool:
    """Whether *text* decodes as JSON to anything other than a bare string."""
    try:
        value = json.loads(text)
    except ValueError:
        return False
    return not isinstance(value, str)


def _decode_text(body: bytes) -> str:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RecipeFormatError(NOT_TEXT_ERROR) from exc
    if _is_json_document(text):
        raise RecipeFormatError(NOT_TEXT_ERROR)
    return text


class RecipeFetcher:
    """Fetch and parse deployment recipes.

    Args:
        session: Optional ``requests.Session``; a fresh one is used per
            fetch when omitted.
        timeout: Upper bound in seconds for the whole fetch.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = RECIPE_TIMEOUT,
    ) -> None:
        self._session = session
        self._timeout = timeout

    @property
    def _timeout_message(self) -> str:
        return f"The request timed out after {self._timeout:g} seconds."

    def fetch(self, url: str) -> str:
        """Return the body of *url* as text.

        The transfer runs on a daemon thread; the caller waits at most
        *timeout* seconds for it.  Raises :class:`RecipeNetworkError` for
        transport failures and :class:`RecipeFormatError` when the body is
        not text (binary, JSON).
        """
        url = url.strip()
        logger.debug("Fetching recipe from %s", url)
        deadline = time.monotonic() + self._timeout
        outcome: Future[str] = Future()
        worker = threading.Thread(
            target=self._run_download,
            args=(url, deadline, outcome),
            name="setupctl-recipe-fetch",
            daemon=True,
        )
        worker.start()
        try:
            return outcome.result(timeout=self._timeout)
        except TimeoutError as exc:
            logger.debug("Recipe fetch from %s exceeded %gs", url, self._timeout)
            raise RecipeNetworkError(self._timeout_message) from exc

    def _run_download(self, url: str, deadline: float, outcome: Future[str]) -> None:
        try:
            outcome.set_result(self._download(url, deadline))
        except Exception as exc:
            outcome.set_exception(exc)

    def _download(self, url: str, deadline: float) -> str:
        session = self._session or requests.Session()
        try:
            with session.get(
                url,
                timeout=self._timeout,
                stream=True,
                headers={"User-Agent": f"setupctl/{__version__}"},
            ) as response:
                response.raise_for_status()
                if not _is_text_response(response):
                    raise RecipeFormatError(NOT_TEXT_ERROR)
                body = self._read_body(response, deadline)
        except requests.Timeout as exc:
            raise RecipeNetworkError(self._timeout_message) from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "unknown"
            msg = f"Request failed with status code {status}"
            raise RecipeNetworkError(msg) from exc
        except (
            requests.exceptions.InvalidURL,
            requests.exceptions.InvalidSchema,
            requests.exceptions.MissingSchema,
        ) as exc:
            msg = f"Invalid URL: {url}"
            raise RecipeNetworkError(msg) from exc
        except requests.RequestException as exc:
            msg = f"Connection failed: {exc}"
            raise RecipeNetworkError(msg) from exc
        finally:
            if self._session is None:
                session.close()
        return _decode_text(body)

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise RecipeNetworkError(self._timeout_message)
            chunks.append(chunk)
        return b"".join(chunks)

    def parse(self, text: str) -> Recipe:
        """Parse recipe *text*; raises :class:`RecipeFormatError`."""
        return parse_recipe(text)

    def fetch_recipe(self, url: str) -> Recipe:
        """Fetch *url* and parse the body as a recipe."""
        return self.parse(self.fetch(url))
