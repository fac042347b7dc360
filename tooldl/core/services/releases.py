"""
Release resolver — query the GitHub "latest release" API and fetch assets.

One GET per tool, no retries. HTTP and network failures are mapped onto
the error taxonomy so the orchestrator can report them per tool.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from pathlib import Path

from pydantic import ValidationError

from tooldl.core.config.loader import DEFAULT_API_URL, DEFAULT_TIMEOUT, SERVICE_NAME
from tooldl.core.errors import (
    AuthenticationError,
    DecodeError,
    FilesystemError,
    NotFound,
    TransportError,
)
from tooldl.core.models.release import AssetDescriptor, ReleaseDescriptor

logger = logging.getLogger(__name__)

USER_AGENT = SERVICE_NAME
_CHUNK_SIZE = 64 * 1024


class ReleaseClient:
    """Authenticated client for the release API.

    Args:
        token: Personal access token sent as ``Authorization: token <token>``.
        api_url: API base URL.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def latest_release_url(self, owner: str, repo: str) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/releases/latest"

    def resolve_latest(self, owner: str, repo: str) -> ReleaseDescriptor:
        """Fetch the latest release descriptor for ``owner/repo``.

        Raises:
            AuthenticationError: HTTP 401/403.
            NotFound: HTTP 404 (no such repository or no release).
            TransportError: Any other HTTP status or network failure.
            DecodeError: Body is not JSON or lacks the expected fields.
        """
        tool = f"{owner}/{repo}"
        url = self.latest_release_url(owner, repo)
        req = urllib.request.Request(
            url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"token {self.token}",
                "User-Agent": USER_AGENT,
            },
        )

        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as exc:
            raise _http_error(tool, url, exc) from exc
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as exc:
            raise TransportError(tool, url, _reason(exc)) from exc

        try:
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(tool, str(exc)) from exc

        try:
            release = ReleaseDescriptor.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(tool, f"{exc.error_count()} invalid field(s)") from exc

        logger.info("%s: latest release %s (%d asset(s))", tool, release.tag, len(release.assets))
        return release

    def download_asset(self, asset: AssetDescriptor, destination: Path) -> Path:
        """Stream ``asset`` to ``destination``, overwriting it.

        The asset URL is a public browser link that redirects to a storage
        host, so only the User-Agent header is sent.

        Raises:
            NotFound: HTTP 404.
            TransportError: Other HTTP or network failures.
            FilesystemError: ``destination`` cannot be written.
        """
        req = urllib.request.Request(asset.download_url, headers={"User-Agent": USER_AGENT})

        logger.debug("Downloading %s → %s", asset.download_url, destination)
        try:
            out = open(destination, "wb")
        except OSError as exc:
            raise FilesystemError(destination, _reason(exc)) from exc

        total = 0
        with out:
            try:
                resp = urllib.request.urlopen(req, timeout=self.timeout)
            except urllib.error.HTTPError as exc:
                raise _http_error(asset.name, asset.download_url, exc) from exc
            except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as exc:
                raise TransportError(asset.name, asset.download_url, _reason(exc)) from exc

            with resp:
                while True:
                    try:
                        chunk = resp.read(_CHUNK_SIZE)
                    except (http.client.HTTPException, TimeoutError, OSError) as exc:
                        raise TransportError(asset.name, asset.download_url, _reason(exc)) from exc
                    if not chunk:
                        break
                    try:
                        out.write(chunk)
                    except OSError as exc:
                        raise FilesystemError(destination, _reason(exc)) from exc
                    total += len(chunk)

        logger.info("Downloaded %s (%d bytes)", asset.name, total)
        return destination


def resolve_latest(
    credential: str,
    owner: str,
    repo: str,
    *,
    api_url: str = DEFAULT_API_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> ReleaseDescriptor:
    """Fetch the latest release of ``owner/repo`` with a one-off client."""
    return ReleaseClient(credential, api_url=api_url, timeout=timeout).resolve_latest(owner, repo)


def _http_error(tool: str, url: str, exc: urllib.error.HTTPError) -> Exception:
    if exc.code in (401, 403):
        return AuthenticationError(tool, exc.code)
    if exc.code == 404:
        return NotFound(tool, url)
    return TransportError(tool, url, f"HTTP {exc.code} {exc.reason}")


def _reason(exc: BaseException) -> str:
    if isinstance(exc, urllib.error.URLError):
        return str(exc.reason)
    if isinstance(exc, TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__
