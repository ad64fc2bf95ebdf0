"""Structured logging setup and per-request context for calculation logs."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from nutrinorm.config import LogFormat, Settings, get_settings

_configured = False

# Requests that are logged at debug level only.
_QUIET_PATHS = frozenset({"/health"})


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Configure stdlib + structlog once per process.

	Engine issues (ambiguous rules, unmatched fertilizers, undetermined
	ceilings) are logged through structlog by the norms service, so the
	renderer chosen here decides how they show up in operations logs.
	"""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		processors.append(structlog.processors.JSONRenderer())
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		processors.append(structlog.dev.ConsoleRenderer())
		logging.basicConfig(level=log_level)

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def _path_context(request: Request) -> dict[str, str]:
	"""Farm/field identifiers and the regulation year, when the request carries them."""
	context: dict[str, str] = {}
	for key in ("farm_id", "field_id"):
		value = request.path_params.get(key)
		if value is not None:
			context[key] = str(value)
	year = request.query_params.get("year")
	if year is not None:
		context["year"] = year
	return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request IDs to the log context and emit per-request timing logs."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)

		logger = structlog.get_logger("nutrinorm.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
				**_path_context(request),
			)
			raise

		response.headers["x-request-id"] = request_id
		log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
		log(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
			**_path_context(request),
		)
		return response
