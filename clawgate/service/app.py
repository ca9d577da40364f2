"""FastAPI application entrypoint for clawgate service mode."""

from __future__ import annotations

import asyncio
import base64
import binascii
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config import ClawGateConfig
from ..logging import get_logger
from ..models import ValidationResult
from ..orchestrator import Orchestrator
from ..validators import ValidationTimeout

_logger = get_logger("service")


class ValidateRequest(BaseModel):
    content_base64: str
    format: Optional[str] = None
    dimensions: str = "2d"
    tier: Optional[str] = None
    libs: List[str] = Field(default_factory=list)


class IssueModel(BaseModel):
    code: str
    severity: str
    message: str
    detail: Optional[Dict[str, Any]] = None


class ValidateResponse(BaseModel):
    ok: bool
    error_code: Optional[str] = None
    errors: List[IssueModel]
    warnings: List[IssueModel]

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidateResponse":
        data = result.to_dict()
        return cls(
            ok=result.ok,
            error_code=result.error_code,
            errors=[IssueModel(**issue) for issue in data["errors"]],
            warnings=[IssueModel(**issue) for issue in data["warnings"]],
        )


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing the validation gate."""

    app = FastAPI(title="ClawGate Service", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/rules")
    async def rules(
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        return orchestrator.rules.summary()

    @app.post("/validate", response_model=ValidateResponse)
    async def validate_submission(
        payload: ValidateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ValidateResponse:
        try:
            content = base64.b64decode(payload.content_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(
                status_code=400, detail=f"content_base64 is not valid base64: {exc}"
            ) from exc

        metadata = {
            "format": payload.format,
            "dimensions": payload.dimensions,
            "tier": payload.tier,
            "libs": payload.libs,
        }

        def _run_validate() -> ValidationResult:
            return orchestrator.validate(content, metadata)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_validate)
        return ValidateResponse.from_result(result)

    @app.exception_handler(ValidationTimeout)
    async def timeout_handler(_: Any, exc: ValidationTimeout) -> JSONResponse:
        _logger.warning("Validation timed out: %s", exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: ClawGateConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    if config is None:
        factory = _default_orchestrator
    else:
        shared = Orchestrator(
            config.rules,
            timeout_seconds=config.timeout_seconds,
            max_workers=config.max_workers,
        )

        def factory() -> Orchestrator:
            return shared

    uvicorn.run(create_app(factory), host=host, port=port)


__all__ = ["HealthResponse", "ValidateRequest", "ValidateResponse", "create_app", "run_service"]
