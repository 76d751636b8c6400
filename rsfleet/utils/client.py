"""API client for the orchestration endpoint.

ApiClient performs single-attempt, authenticated request/response exchanges.
The wire is delegated to a transport:
- HttpTransport sends real requests through a requests.Session
- FixtureTransport answers from canned responses and never touches the network

The transport is chosen explicitly at construction time, either by passing one
in or through FleetConfig.fixture_file.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests

from rsfleet.errors import DecodeError, RequestError
from rsfleet.utils.config import FleetConfig
from rsfleet.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

OAUTH_PATH = "/api/oauth2"


@dataclass
class ApiResponse:
    """Status code and raw body of a completed request."""

    status_code: int
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise DecodeError(f"could not decode JSON response: {e}") from e


class HttpTransport:
    """Transport backed by a requests.Session."""

    requires_auth = True

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        data: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RequestError(f"error performing {method} {url}: {e}") from e
        return ApiResponse(status_code=response.status_code, body=response.content)

    def close(self) -> None:
        self.session.close()


@dataclass
class FixtureTransport:
    """Transport answering from canned responses.

    Responses are keyed by ``"<METHOD> <path>"`` where path includes any
    query string, e.g. ``"GET /api/deployments"``. Each value is either a JSON
    document (served with status 200) or ``{"status": <int>, "body": <doc>}``.
    Unknown requests get a 404.
    """

    responses: Dict[str, Any] = field(default_factory=dict)
    calls: List[Tuple[str, str]] = field(default_factory=list)

    requires_auth = False

    @classmethod
    def from_file(cls, path: str) -> "FixtureTransport":
        with open(path, encoding="utf-8") as f:
            return cls(responses=json.load(f))

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        data: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        path = url
        if "://" in path:
            path = "/" + path.split("://", 1)[1].split("/", 1)[-1]
        self.calls.append((method, path))

        canned = self.responses.get(f"{method} {path}")
        if canned is None:
            return ApiResponse(status_code=404, body=b"")

        if isinstance(canned, dict) and "status" in canned:
            status = int(canned["status"])
            body = canned.get("body")
        else:
            status, body = 200, canned

        if body is None:
            raw = b""
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = json.dumps(body).encode("utf-8")
        return ApiResponse(status_code=status, body=raw)

    def close(self) -> None:
        pass


def build_transport(config: FleetConfig):
    """Create the transport selected by configuration."""
    if config.fixture_file:
        logger.info(f"Using fixture transport from {config.fixture_file}")
        return FixtureTransport.from_file(config.fixture_file)
    return HttpTransport(timeout=config.request_timeout)


class ApiClient:
    """Authenticated request primitives for the orchestration API."""

    def __init__(self, config: FleetConfig, transport: Any = None):
        self.config = config
        self.transport = transport if transport is not None else build_transport(config)
        self._bearer_token: Optional[str] = None
        self._token_lock = threading.Lock()

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.endpoint.rstrip('/')}{path}"

    def _get_bearer_token(self) -> str:
        """Exchange the refresh token for a bearer token, once per client."""
        with self._token_lock:
            if self._bearer_token is not None:
                return self._bearer_token

            response = self.transport.request(
                "POST",
                self.url_for(OAUTH_PATH),
                headers={"X_API_VERSION": self.config.api_version, "Accept": "application/json"},
                data={"grant_type": "refresh_token", "refresh_token": self.config.refresh_token},
            )
            if response.status_code >= 400:
                raise RequestError(
                    f"error retrieving bearer token: status {response.status_code}",
                    status_code=response.status_code,
                    body=LogSanitizer.sanitize(response.text),
                )

            payload = response.json()
            access_token = payload.get("access_token") if isinstance(payload, dict) else None
            if not access_token:
                raise DecodeError("oauth response did not contain an access_token")

            self._bearer_token = f"Bearer {access_token}"
            logger.debug("Acquired bearer token")
            return self._bearer_token

    def _headers(self) -> Dict[str, str]:
        headers = {
            "X_API_VERSION": self.config.api_version,
            "Content-Type": "application/json",
        }
        if getattr(self.transport, "requires_auth", True):
            headers["Authorization"] = self._get_bearer_token()
        return headers

    def send_detailed(self, method: str, path: str, body: Any = None) -> ApiResponse:
        """
        Perform one request and return its status code and body.

        Raises:
            RequestError: Only on transport failure; any status is returned.
        """
        url = self.url_for(path)
        logger.debug(f"Request: {method} {url}")
        return self.transport.request(method, url, headers=self._headers(), json_body=body)

    def send(self, method: str, path: str, body: Any = None) -> bytes:
        """
        Perform one request and return its raw body.

        Raises:
            RequestError: On transport failure or a status of 400 or above.
        """
        response = self.send_detailed(method, path, body)
        if response.status_code >= 400:
            raise RequestError(
                f"{method} {path} returned status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.body

    def get_json(self, path: str) -> Any:
        return self._decode(self.send("GET", path), path)

    def post_json(self, path: str, body: Any) -> Any:
        return self._decode(self.send("POST", path, body), path)

    @staticmethod
    def _decode(raw: bytes, path: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"could not decode JSON from {path}: {e}") from e

    def close(self) -> None:
        self.transport.close()
