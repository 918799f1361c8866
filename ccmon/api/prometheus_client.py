"""Prometheus HTTP API client for querying Claude Code usage metrics."""

import asyncio
import http.client
import json
import logging
import socket
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import ValidationError

from ..models import MetricSample, MetricSeries
from .errors import (
    ConnectionFailedError, DecodingError, HTTPStatusError, InvalidURLError,
    NoDataError, QueryError,
)
from .queries.builder import PromQuery
from .queries.labels import normalize_labels
from .queries.utils import parse_sample_value
from .schemas import (
    BuildInfo, PrometheusMetricResult, PrometheusQueryData, PrometheusResponse,
    TargetsData,
)

logger = logging.getLogger("ccmon.client")

M = TypeVar("M")
QueryLike = Union[str, PromQuery]

DEFAULT_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = 5.0


class MetricsClient:
    """Client for the Prometheus HTTP API (``/api/v1``)."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, cache_ttl: float = DEFAULT_CACHE_TTL):
        """
        Initialize Prometheus client.

        Args:
            base_url: Prometheus server address, e.g. "http://localhost:9090"
            timeout: Per-request timeout in seconds
            cache_ttl: Seconds a successful query response may be reused

        Raises:
            InvalidURLError: If base_url is not an absolute http(s) URL
        """
        parsed = urllib.parse.urlparse(base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidURLError(base_url)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._cache: Dict[str, Tuple[float, bytes]] = {}
        self._cache_lock = threading.Lock()

    # Public API

    async def check_connection(self) -> BuildInfo:
        """Probe ``/api/v1/status/buildinfo``; never served from cache."""
        raw = await self._get("/api/v1/status/buildinfo", use_cache=False)
        return self._decode(raw, BuildInfo)

    async def query(self, query: QueryLike, at: Optional[float] = None) -> List[MetricSample]:
        """
        Run an instant query.

        Args:
            query: PromQL string or PromQuery
            at: Evaluation timestamp (epoch seconds); backend "now" when None

        Returns:
            One sample per returned series; unparseable values are skipped
        """
        params = {"query": str(query)}
        if at is not None:
            params["time"] = _format_time(at)
        raw = await self._get("/api/v1/query", params)
        data = self._decode(raw, PrometheusQueryData)

        samples = []
        for result in data.result:
            sample = _sample_from_pair(result.value, normalize_labels(result.metric))
            if sample is not None:
                samples.append(sample)
        return samples

    async def query_range(self, query: QueryLike, start: float, end: float, step: float) -> List[MetricSeries]:
        """
        Run a range query.

        Args:
            query: PromQL string or PromQuery
            start: Range start (epoch seconds)
            end: Range end (epoch seconds)
            step: Resolution step in seconds

        Returns:
            One MetricSeries per returned label set, samples sorted by time
        """
        params = {
            "query": str(query),
            "start": _format_time(start),
            "end": _format_time(end),
            "step": str(int(step)),
        }
        raw = await self._get("/api/v1/query_range", params)
        data = self._decode(raw, PrometheusQueryData)
        return [_series_from_result(result) for result in data.result]

    async def get_targets(self) -> TargetsData:
        raw = await self._get("/api/v1/targets", use_cache=False)
        return self._decode(raw, TargetsData)

    async def discover_metric_names(self, matching: str = "claude") -> List[str]:
        """
        List metric names known to the backend whose name contains ``matching``.

        The match is case-insensitive; results are sorted.
        """
        raw = await self._get("/api/v1/label/__name__/values", use_cache=False)
        names = self._decode(raw, List[str])
        pattern = matching.lower()
        return sorted(name for name in names if pattern in name.lower())

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    # Transport

    def _build_url(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        url = f"{self.base_url}{path}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None, use_cache: bool = True) -> bytes:
        url = self._build_url(path, params)

        if use_cache:
            cached = self._cache_get(url)
            if cached is not None:
                logger.debug(f"Cache hit: {url}")
                return cached

        # Blocking urllib call runs in the default executor; the cache lock
        # is never held across it
        loop = asyncio.get_running_loop()
        raw = await loop.run_in_executor(None, self._fetch_raw, url)

        if use_cache:
            self._cache_put(url, raw)
        return raw

    def _fetch_raw(self, url: str) -> bytes:
        """
        Perform one blocking GET.

        Raises:
            InvalidURLError: If urllib rejects the URL
            ConnectionFailedError: On refused connections, DNS failures, timeouts
                and truncated or malformed HTTP responses
            QueryError: On non-2xx responses carrying a Prometheus error envelope
            HTTPStatusError: On any other non-2xx response
        """
        req = urllib.request.Request(url)
        req.add_header("Accept", "application/json")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return response.read()
        except urllib.error.HTTPError as e:
            body = e.read() if e.fp is not None else b""
            backend_error = _backend_error(body)
            if backend_error is not None:
                logger.warning(f"Prometheus rejected query ({e.code}): {backend_error[0]}")
                raise QueryError(*backend_error) from e
            raise HTTPStatusError(e.code, body.decode("utf-8", errors="replace") or None) from e
        except urllib.error.URLError as e:
            raise ConnectionFailedError(str(e.reason)) from e
        except (socket.timeout, TimeoutError) as e:
            raise ConnectionFailedError("request timed out") from e
        except ConnectionError as e:
            raise ConnectionFailedError(str(e)) from e
        except http.client.HTTPException as e:
            raise ConnectionFailedError(f"malformed HTTP response: {e!r}") from e
        except ValueError as e:
            raise InvalidURLError(url) from e

    def _decode(self, raw: bytes, model: Type[M]) -> M:
        """
        Parse a Prometheus envelope and return its ``data`` payload.

        Raises:
            DecodingError: If the body does not match the expected schema
            QueryError: If the envelope status is "error"
            NoDataError: If a successful envelope carries no data
        """
        try:
            envelope = PrometheusResponse[model].model_validate_json(raw)
        except ValidationError as e:
            backend_error = _backend_error(raw)
            if backend_error is not None:
                raise QueryError(*backend_error) from e
            raise DecodingError(str(e)) from e

        if not envelope.is_success:
            raise QueryError(envelope.error or "unknown error", envelope.errorType)
        if envelope.data is None:
            raise NoDataError()
        return envelope.data

    # Cache

    def _cache_get(self, url: str) -> Optional[bytes]:
        now = time.monotonic()
        with self._cache_lock:
            entry = self._cache.get(url)
            if entry is None:
                return None
            stored_at, raw = entry
            if now - stored_at >= self.cache_ttl:
                del self._cache[url]
                return None
            return raw

    def _cache_put(self, url: str, raw: bytes) -> None:
        now = time.monotonic()
        with self._cache_lock:
            expired = [key for key, (stored_at, _) in self._cache.items() if now - stored_at >= self.cache_ttl]
            for key in expired:
                del self._cache[key]
            self._cache[url] = (now, raw)


def _format_time(ts: float) -> str:
    return f"{ts:.3f}"


def _backend_error(body: bytes) -> Optional[Tuple[str, Optional[str]]]:
    """Extract (error, errorType) from a Prometheus error envelope, if present."""
    try:
        payload = json.loads(body)
    except (ValueError, TypeError):
        return None
    if isinstance(payload, dict) and payload.get("status") == "error":
        return str(payload.get("error") or "unknown error"), payload.get("errorType")
    return None


def _sample_from_pair(pair: Optional[list], labels: Dict[str, str]) -> Optional[MetricSample]:
    if not pair:
        return None
    try:
        timestamp = float(pair[0])
    except (TypeError, ValueError):
        return None
    value = parse_sample_value(pair[1])
    if value is None:
        return None
    return MetricSample(timestamp=timestamp, value=value, labels=labels)


def _series_from_result(result: PrometheusMetricResult) -> MetricSeries:
    labels = normalize_labels(result.metric)
    samples = []
    for pair in result.values or []:
        sample = _sample_from_pair(pair, labels)
        if sample is not None:
            samples.append(sample)
    samples.sort(key=lambda s: s.timestamp)
    return MetricSeries(labels=labels, samples=tuple(samples))
