"""HTTP client for the boogie-vec search backend implementing IndexSyncPort."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from boogie.app.ports.index_sync import (
    IndexSyncPort,
    LoadResult,
    QueryResult,
    StatsResult,
    require_positive_k,
    validate_load_options,
)
from boogie.config import IndexBackend, IndexMetric
from boogie.errors import (
    LoadFailed,
    MalformedResponse,
    QueryFailed,
    RemoteError,
    StatsFailed,
    Unreachable,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BoogieVecClient(IndexSyncPort):
    """Typed client for ``/load``, ``/query``, ``/stats``, and ``/healthz``.

    Each method issues exactly one request. Connection failures and timeouts
    surface as :class:`Unreachable`; undecodable success bodies as
    :class:`MalformedResponse`; backend error bodies as :class:`RemoteError`
    subclasses carrying the backend's ``code`` and ``message``.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080",
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self._base_url!r}, timeout={self._timeout!r})"

    def load_index(
        self,
        path: str,
        dim: int,
        *,
        ids_path: str | None = None,
        backend: IndexBackend = "bruteforce",
        metric: IndexMetric = "cosine",
        n_trees: int = 50,
        extra_params: Mapping[str, Any] | None = None,
    ) -> LoadResult:
        validate_load_options(backend, metric, extra_params)

        body: dict[str, Any] = {
            "path": str(path),
            "dim": int(dim),
            "metric": metric,
            "backend": backend,
        }
        if ids_path:
            body["ids_path"] = str(ids_path)
        if backend == "annoy":
            body["n_trees"] = int(n_trees)
        if extra_params:
            body.update(extra_params)

        response = self._request("POST", "/load", json_body=body)
        if not _is_success(response):
            raise _remote_error(response, LoadFailed)
        result = _decode(response, LoadResult)
        if not result.ok:
            logger.warning("Backend rejected load of %s without an error body", path)
            raise LoadFailed(
                "LOAD_REJECTED",
                f"Backend answered ok=false for {path}",
                status_code=response.status_code,
            )
        if result.loaded is None:
            raise MalformedResponse(f"{response.url} reported ok=true without a loaded summary")
        return result

    def query(self, vector: Sequence[float], k: int) -> QueryResult:
        require_positive_k(k)
        body = {"k": k, "vector": [float(value) for value in vector]}

        response = self._request("POST", "/query", json_body=body)
        if not _is_success(response):
            raise _remote_error(response, QueryFailed)
        return _decode(response, QueryResult)

    def get_stats(self) -> StatsResult:
        response = self._request("GET", "/stats")
        if not _is_success(response):
            raise _remote_error(response, StatsFailed)
        return _decode(response, StatsResult)

    def health_check(self) -> str:
        response = self._request("GET", "/healthz")
        if not _is_success(response):
            raise Unreachable(
                f"Health check failed: {response.status_code} {response.reason or ''}".rstrip()
            )
        return response.text

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._session.request(method, url, json=json_body, timeout=self._timeout)
        except requests.Timeout as exc:
            raise Unreachable(f"{method} {url} timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise Unreachable(f"{method} {url} failed: {exc}") from exc


def _is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def _decode(response: requests.Response, model: type[ModelT]) -> ModelT:
    try:
        payload = response.json()
    except ValueError as exc:
        raise MalformedResponse(
            f"{response.url} returned a non-JSON body (status {response.status_code})"
        ) from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponse(
            f"{response.url} returned an unexpected {model.__name__} payload: {exc}"
        ) from exc


def _remote_error(response: requests.Response, error_cls: type[RemoteError]) -> RemoteError:
    """Build a typed error from ``{"error": {"code", "message"}}`` when present."""
    status = response.status_code
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        code = str(error.get("code") or f"HTTP_{status}")
        message = str(error.get("message") or response.reason or "")
    else:
        code = f"HTTP_{status}"
        message = (response.text or response.reason or "").strip()

    logger.warning("Backend returned %s for %s: [%s] %s", status, response.url, code, message)
    return error_cls(code, message, status_code=status)
