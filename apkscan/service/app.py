"""FastAPI application entrypoint for apkscan service mode."""

from __future__ import annotations

import asyncio
import base64
import binascii
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..axml import DecodeError, decode_to_xml
from ..orchestrator import Orchestrator
from ..report import AnalysisResult, build_report, encodable
from ..stores import Catalog, load_catalog


class AnalyzeRequest(BaseModel):
    path: str
    include_xml: bool = False


class DecodeRequest(BaseModel):
    manifest_base64: str


class DecodeResponse(BaseModel):
    xml: str


class AnalyzeResponse(BaseModel):
    status: str
    report: Dict[str, Any]
    progress: List[str] = []


class HealthResponse(BaseModel):
    status: str
    catalog_version: Optional[str] = None


def _encodable_payload(value: Any) -> Any:
    if isinstance(value, str):
        return encodable(value)
    if isinstance(value, dict):
        return {key: _encodable_payload(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_encodable_payload(item) for item in value]
    return value


def create_app(
    catalog_factory: Callable[[], Catalog],
    orchestrator_factory: Callable[[Catalog], Orchestrator] = Orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing apkscan operations."""

    app = FastAPI(title="apkscan Service", version="1.0.0")

    def get_catalog() -> Catalog:
        return catalog_factory()

    async def get_orchestrator(catalog: Catalog = Depends(get_catalog)) -> Orchestrator:
        # One orchestrator (and match cache) per request.
        return orchestrator_factory(catalog)

    @app.get("/health", response_model=HealthResponse)
    async def health(catalog: Catalog = Depends(get_catalog)) -> HealthResponse:
        return HealthResponse(status="ok", catalog_version=catalog.version)

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        stages: List[str] = []

        def _run() -> AnalysisResult:
            return orchestrator.run_package(
                payload.path, progress=lambda update: stages.append(update.stage)
            )

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run)
        return AnalyzeResponse(
            status="ok",
            report=_encodable_payload(build_report(result, include_xml=payload.include_xml)),
            progress=stages,
        )

    @app.post("/decode", response_model=DecodeResponse)
    async def decode(payload: DecodeRequest) -> DecodeResponse:
        try:
            data = base64.b64decode(payload.manifest_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(
                status_code=400, detail=f"manifest_base64 is not valid base64: {exc}"
            ) from exc
        loop = asyncio.get_running_loop()
        xml_text = await loop.run_in_executor(None, decode_to_xml, data)
        return DecodeResponse(xml=encodable(xml_text))

    @app.exception_handler(DecodeError)
    async def decode_error_handler(_: Any, exc: DecodeError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    catalog_path: Path, host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    catalog = load_catalog(catalog_path)
    app = create_app(lambda: catalog)
    uvicorn.run(app, host=host, port=port)
