"""HTTP client for the time-series database's /query, /write and /ping endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class InfluxError(Exception):
    """Base exception for errors reported by the server."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QueryError(InfluxError):
    """A query was rejected or one of its statements failed."""


class WriteError(InfluxError):
    """A write was rejected."""


@dataclass
class Series:
    """One series from a query result, e.g. the rows of a single measurement."""
    name: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    columns: list[str] = field(default_factory=list)
    values: list[list[Any]] = field(default_factory=list)

    @property
    def records(self) -> list[dict[str, Any]]:
        """Rows as dicts keyed by column, with the series tags merged in."""
        return [{**self.tags, **dict(zip(self.columns, row))} for row in self.values]


def series_from_response(payload: dict[str, Any]) -> list[Series]:
    """Flatten every statement's series from a /query JSON response.

    Raises QueryError for a response- or statement-level error.
    """
    if "error" in payload:
        raise QueryError(payload["error"])
    series: list[Series] = []
    for result in payload.get("results", []):
        if "error" in result:
            raise QueryError(result["error"])
        for raw in result.get("series", []):
            series.append(Series(
                name=raw.get("name"),
                tags=raw.get("tags") or {},
                columns=raw.get("columns", []),
                values=raw.get("values", []),
            ))
    return series


class InfluxClient:
    """Synchronous client over httpx."""

    def __init__(
        self,
        url: str = "http://localhost:8086",
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.database = database
        auth = (username, password or "") if username else None
        self._client = httpx.Client(
            base_url=self.url,
            timeout=httpx.Timeout(timeout),
            auth=auth,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Any, transport: httpx.BaseTransport | None = None) -> InfluxClient:
        return cls(
            url=settings.url,
            database=settings.database,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> InfluxClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ---- Endpoints ----

    def query(self, q: str, db: str | None = None, epoch: str | None = None) -> dict[str, Any]:
        """POST a query and return the decoded JSON response."""
        data = {"q": q}
        database = db if db is not None else self.database
        if database:
            data["db"] = database
        if epoch:
            data["epoch"] = epoch

        logger.debug("POST /query db=%r q=%r", database, q)
        response = self._client.post("/query", data=data)
        if response.status_code >= 400:
            raise QueryError(_error_text(response), status_code=response.status_code)
        return response.json()

    def query_series(self, q: str, db: str | None = None, epoch: str | None = None) -> list[Series]:
        return series_from_response(self.query(q, db=db, epoch=epoch))

    def write(
        self,
        lines: list[str] | str,
        db: str | None = None,
        precision: str | None = None,
        retention_policy: str | None = None,
    ) -> None:
        """Write line protocol. The server answers 204 on success."""
        if not isinstance(lines, str):
            lines = "\n".join(lines)
        database = db or self.database
        if not database:
            raise WriteError("No database given for write")

        params = {"db": database}
        if precision:
            params["precision"] = precision
        if retention_policy:
            params["rp"] = retention_policy

        logger.debug("POST /write db=%r (%d bytes)", database, len(lines))
        response = self._client.post("/write", params=params, content=lines.encode("utf-8"))
        if response.status_code != 204:
            raise WriteError(_error_text(response), status_code=response.status_code)

    def ping(self) -> str:
        """Return the server version, or an empty string if it does not say."""
        response = self._client.get("/ping")
        if response.status_code >= 400:
            raise InfluxError(_error_text(response), status_code=response.status_code)
        return response.headers.get("X-Influxdb-Version", "")


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and "error" in payload:
        return str(payload["error"])
    return f"HTTP {response.status_code}: {response.text.strip()}"
