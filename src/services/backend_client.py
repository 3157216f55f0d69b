"""
Async client for the managed backend.

Two surfaces:
- PostgREST table access under ``/rest/v1/<table>`` (select, upsert)
- Edge functions under ``/functions/v1/<name>`` for privileged operations

Every failure surfaces as BackendError; nothing is retried.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from config.settings import BackendSettings, get_backend_settings

logger = logging.getLogger(__name__)

FILTER_OPERATORS = ("eq", "in", "gte", "lte", "is")

Filter = Union[Any, Tuple[str, Any]]


class BackendError(Exception):
    """A backend call failed: unreachable, or answered with status >= 400."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filter(filter_value: Filter) -> str:
    """
    PostgREST filter expression for one column.

    A bare value means equality; ``(op, value)`` picks the operator.

    Examples:
        >>> encode_filter("abc")
        'eq.abc'
        >>> encode_filter(("in", ["new", "in_progress"]))
        'in.(new,in_progress)'
        >>> encode_filter(("is", None))
        'is.null'
    """
    if isinstance(filter_value, tuple) and len(filter_value) == 2 and filter_value[0] in FILTER_OPERATORS:
        op, value = filter_value
    else:
        op, value = "eq", filter_value

    if op == "in":
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise ValueError("'in' filter needs a list of values")
        return "in.(" + ",".join(_format_value(v) for v in value) + ")"
    return f"{op}.{_format_value(value)}"


def build_select_params(
    columns: str = "*",
    filters: Optional[Mapping[str, Union[Filter, Sequence[Filter]]]] = None,
    order: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Tuple[str, str]]:
    """
    Query parameters for a PostgREST select.

    A column may carry several filters (a list), e.g. a ``gte`` and an
    ``lte`` bound on the same timestamp.
    """
    params = [("select", columns)]
    for column, spec in (filters or {}).items():
        specs = spec if isinstance(spec, list) else [spec]
        for item in specs:
            params.append((column, encode_filter(item)))
    if order:
        params.append(("order", order))
    if limit is not None:
        params.append(("limit", str(limit)))
    return params


def _error_message(response: httpx.Response, default: str) -> Tuple[str, Dict[str, Any]]:
    try:
        payload = response.json()
    except ValueError:
        return default, {}
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error") or default
        return str(message), payload
    return default, {}


class BackendClient:
    """
    Thin request layer over httpx.

    Args:
        settings: backend settings, defaults to the cached environment settings
        access_token: caller's JWT; when absent the API key is used as bearer
        transport: optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        settings: Optional[BackendSettings] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_backend_settings()
        self.access_token = access_token
        self._transport = transport

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self.settings.api_key
        if api_key:
            headers["apikey"] = api_key
        bearer = self.access_token or api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json,
                    headers=self._headers(headers),
                )
        except httpx.HTTPError as exc:
            logger.error("Backend request failed: %s %s (%s)", method, url, exc)
            raise BackendError("Unable to reach the backend") from exc

        if response.status_code >= 400:
            message, details = _error_message(response, "Backend request failed")
            logger.error("Backend error %s %s %s: %s", response.status_code, method, url, message)
            raise BackendError(message, status_code=response.status_code, details=details)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError("Backend returned a non-JSON body", status_code=response.status_code) from exc

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Union[Filter, Sequence[Filter]]]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Read rows; ``filters`` maps column -> value or (operator, value)."""
        url = f"{self.settings.rest_url}/{table}"
        data = await self._request("GET", url, params=build_select_params(columns, filters, order, limit))
        return data or []

    async def upsert(
        self,
        table: str,
        payload: Union[Dict[str, Any], List[Dict[str, Any]]],
        on_conflict: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Insert or merge rows, returning the stored representation."""
        url = f"{self.settings.rest_url}/{table}"
        params = [("on_conflict", on_conflict)] if on_conflict else None
        data = await self._request(
            "POST",
            url,
            params=params,
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return data or []

    async def invoke_function(
        self,
        name: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Call an edge function with a JSON body."""
        url = f"{self.settings.functions_url}/{name}"
        logger.debug("Invoking backend function %s", name)
        return await self._request("POST", url, json=payload or {}, headers=headers)
