"""
Odoo JSON-RPC client for the MCP server.

Talks to ``<url>/jsonrpc`` using the ``common`` service for the
handshake (version, authenticate) and ``object.execute`` for model
calls.  Authenticates lazily, caches the uid, and reconnects once on
transport errors when the call is safe to replay.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any

import httpx

from .config import OdooConfig, get_settings

log = logging.getLogger(__name__)

# Model methods with no side effects; safe to resend after a lost response
READ_METHODS = frozenset({"fields_get", "search_count", "search_read", "read"})

# Failures raised before the request reached the server
_UNSENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class OdooError(RuntimeError):
    """Odoo returned an error, or the RPC could not be completed."""

    def __init__(self, message: str, code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class OdooClient:
    """JSON-RPC connection to one Odoo database."""

    def __init__(
        self,
        config: OdooConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._http = http_client
        self._owns_http = http_client is None
        self._uid: int | None = None
        self._ids = itertools.count(1)

    @property
    def config(self) -> OdooConfig:
        return self._config

    @property
    def uid(self) -> int | None:
        return self._uid

    # -- Transport -----------------------------------------------------------

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(
                timeout=self._config.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._http

    def _reset_transport(self) -> None:
        """Drop the HTTP client (if we own it) so the next call reconnects."""
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None

    def close(self) -> None:
        if self._owns_http and self._http is not None:
            self._http.close()
        self._http = None

    def call(self, service: str, method: str, args: list[Any]) -> Any:
        """
        Send one JSON-RPC ``call`` and return its result.

        Raises:
            OdooError: on an error payload, an HTTP error status, or a
                response that is not a JSON-RPC object.
            httpx.TransportError: when the request or response is lost;
                ``execute`` decides whether to retry, ``connect`` wraps it.
        """
        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": next(self._ids),
        }
        try:
            resp = self._client().post(self._config.endpoint, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise OdooError(
                f"JSON-RPC call failed: HTTP {exc.response.status_code}"
            ) from exc
        except ValueError as exc:
            raise OdooError(f"JSON-RPC call failed: invalid JSON response ({exc})") from exc
        if not isinstance(body, dict):
            raise OdooError(
                f"JSON-RPC call failed: expected an object, got {type(body).__name__}"
            )

        error = body.get("error")
        if error:
            data = error.get("data") or {}
            detail = data.get("message") or error.get("message", "Unknown error")
            raise OdooError(
                f"Odoo Error {error.get('code')}: {detail}",
                code=error.get("code"),
                data=data,
            )
        return body.get("result")

    # -- Handshake -----------------------------------------------------------

    def version(self) -> dict[str, Any]:
        return self.call("common", "version", [])

    def authenticate(self) -> int:
        """Authenticate with the configured credentials and cache the uid."""
        cfg = self._config
        uid = self.call(
            "common", "authenticate", [cfg.db, cfg.username, cfg.password, {}]
        )
        # Odoo answers False for bad credentials; bool is an int subclass
        if isinstance(uid, bool) or not isinstance(uid, int):
            raise OdooError(
                "Authentication failed: invalid credentials or server response"
            )
        self._uid = uid
        return uid

    def check_access(self) -> bool:
        """Return True if the authenticated user can read its own record."""
        try:
            rows = self.execute("res.users", "read", [self._uid], ["id", "name", "login"])
        except OdooError as exc:
            log.warning("Connection verification failed: %s", exc)
            return False
        return bool(rows) and rows[0].get("id") == self._uid

    def connect(self) -> dict[str, Any]:
        """
        Full handshake: server version, authenticate, verify access.

        Returns the server version info.
        """
        self._config.require()
        t0 = time.monotonic()
        try:
            info = self.version()
            uid = self.authenticate()
        except httpx.TransportError as exc:
            raise OdooError(
                f"Cannot reach Odoo at {self._config.endpoint}: {exc}"
            ) from exc
        if not self.check_access():
            raise OdooError("Connection verification failed")
        log.info(
            "Connected to %s/%s as uid %d (server %s) in %.1fs",
            self._config.url,
            self._config.db,
            uid,
            info.get("server_version", "?"),
            time.monotonic() - t0,
        )
        return info

    # -- Model calls ---------------------------------------------------------

    def execute(self, model: str, method: str, *args: Any) -> Any:
        """
        Call ``method`` on ``model`` via ``object.execute``.

        Authenticates on first use.  A transport error triggers one
        reconnect-and-retry when replaying is safe: the failure hit the
        handshake, the method only reads, or the request never left
        (connect errors).  A write whose response was lost is not sent
        twice.
        """
        for attempt in range(2):
            sent = False
            try:
                if self._uid is None:
                    self.authenticate()
                cfg = self._config
                sent = True
                return self.call(
                    "object",
                    "execute",
                    [cfg.db, self._uid, cfg.password, model, method, *args],
                )
            except httpx.TransportError as exc:
                replayable = (
                    not sent
                    or method in READ_METHODS
                    or isinstance(exc, _UNSENT_ERRORS)
                )
                if not replayable:
                    raise OdooError(
                        f"Odoo call {model}.{method} failed ({type(exc).__name__}); "
                        "not retried because the server may have applied it"
                    ) from exc
                if attempt == 0:
                    log.warning(
                        "Connection error (%s), reconnecting...", type(exc).__name__
                    )
                    self._reset_transport()
                    self._uid = None
                else:
                    raise OdooError(f"Odoo call failed after reconnect: {exc}") from exc
        raise AssertionError("unreachable")

    def fields_get(
        self,
        model: str,
        field_names: list[str] | None = None,
        attributes: list[str] | None = None,
    ) -> dict[str, dict[str, Any]]:
        return self.execute(model, "fields_get", field_names or [], attributes or [])

    def search_count(self, model: str, domain: list[Any]) -> int:
        return self.execute(model, "search_count", domain)

    def search_read(
        self,
        model: str,
        domain: list[Any],
        fields: list[str] | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        # Empty field list means "all fields" to Odoo
        return self.execute(model, "search_read", domain, fields or [], offset, limit)

    def read(
        self,
        model: str,
        ids: list[int],
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        return self.execute(model, "read", ids, fields or [])

    def create(self, model: str, values: list[dict[str, Any]]) -> list[int]:
        result = self.execute(model, "create", values)
        # Older servers return a bare id for single-record creates
        return result if isinstance(result, list) else [result]

    def write(self, model: str, ids: list[int], values: dict[str, Any]) -> bool:
        return self.execute(model, "write", ids, values)

    def unlink(self, model: str, ids: list[int]) -> bool:
        return self.execute(model, "unlink", ids)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_odoo: OdooClient | None = None


def get_odoo() -> OdooClient:
    """Get or create the shared Odoo client."""
    global _odoo
    if _odoo is None:
        settings = get_settings()
        settings.odoo.require()
        _odoo = OdooClient(settings.odoo)
    return _odoo
