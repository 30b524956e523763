"""HTTP registration endpoint.

Exposes:
  POST   /client     register or replace an agent (alias: /register)
  DELETE /client     withdraw an agent
  GET    /targets    live target groups in http_sd shape
  GET    /health     liveness check
"""

from __future__ import annotations

import logging
from typing import Any, AsyncContextManager, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .config import DiscoveryConfig
from .discovery import build_live_groups
from .errors import RegistrationValidationError
from .registry import Registry, validate_identity, validate_registration

logger = logging.getLogger(__name__)

_ERROR_HEADERS = {"X-Content-Type-Options": "nosniff"}


def _error(exc: RegistrationValidationError, status_code: int = 400) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=status_code, headers=_ERROR_HEADERS)


async def _read_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise RegistrationValidationError("body", "request body is not valid JSON")


def create_app(
    registry: Registry,
    discovery: Optional[DiscoveryConfig] = None,
    lifespan: Optional[Callable[[FastAPI], AsyncContextManager[None]]] = None,
) -> FastAPI:
    """Build the FastAPI application serving ``registry``."""

    discovery = discovery or DiscoveryConfig()
    app = FastAPI(title="autosd", lifespan=lifespan)
    app.state.registry = registry

    async def register_client(request: Request) -> Response:
        try:
            entry = validate_registration(await _read_body(request))
            await registry.register(entry)
        except RegistrationValidationError as exc:
            logger.info("Rejected registration: %s", exc.message)
            return _error(exc)
        logger.info("Registered %s targets=%s", entry.display_name, entry.targets)
        return Response(status_code=204)

    app.add_api_route("/client", register_client, methods=["POST"])
    app.add_api_route("/register", register_client, methods=["POST"])

    @app.delete("/client")
    async def deregister_client(request: Request) -> Response:
        try:
            app_name, instance_name = validate_identity(await _read_body(request))
        except RegistrationValidationError as exc:
            return _error(exc)

        if not await registry.deregister(app_name, instance_name):
            return JSONResponse(
                {"error": "registration not found", "field": "app"},
                status_code=404,
                headers=_ERROR_HEADERS,
            )
        logger.info("Deregistered %s instance=%s", app_name, instance_name or "-")
        return Response(status_code=204)

    @app.get("/targets")
    async def list_targets() -> list[dict[str, Any]]:
        live = build_live_groups(
            await registry.snapshot(),
            label_prefix=discovery.label_prefix,
            default_metrics_path=discovery.default_metrics_path,
        )
        return [group.to_file_sd() for group in live.values()]

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "registrations": len(registry)}

    return app
