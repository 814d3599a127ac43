"""FastAPI application entrypoint for repograph service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Literal, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..errors import CloneError, RepographError
from ..models import FileAnalysisResult
from ..pipeline import Pipeline

T = TypeVar("T")


class AnalyzeRequest(BaseModel):
    repository_url: str
    branch: Optional[str] = None
    repository_id: Optional[str] = None
    max_files: Optional[int] = Field(default=None, ge=1)
    skip_files: Optional[int] = Field(default=None, ge=0)


class GraphRequest(BaseModel):
    files: List[Dict[str, Any]]


class SummaryRequest(BaseModel):
    code: str
    type: Literal["file", "entity"] = "file"
    entity_name: Optional[str] = None
    file_path: Optional[str] = None


class SummaryResponse(BaseModel):
    summary: str


class HealthResponse(BaseModel):
    status: str


def _default_pipeline() -> Pipeline:
    return Pipeline()


async def _run_blocking(fn: Callable[[], T]) -> T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return fn()
    return await loop.run_in_executor(None, fn)


def create_app(
    pipeline_factory: Callable[[], Pipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application exposing repograph operations."""

    app = FastAPI(title="Repograph Service", version="0.1.0")

    async def get_pipeline() -> Pipeline:
        return pipeline_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        pipeline: Pipeline = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        analysis = await _run_blocking(
            lambda: pipeline.run_analysis(
                payload.repository_url,
                payload.branch,
                payload.repository_id,
                max_files=payload.max_files,
                skip_files=payload.skip_files,
            )
        )
        return analysis.to_dict()

    @app.post("/graph")
    async def graph(
        payload: GraphRequest,
        pipeline: Pipeline = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        files = [FileAnalysisResult.from_dict(item) for item in payload.files]
        return pipeline.build_graph(files).to_dict()

    @app.post("/summary", response_model=SummaryResponse)
    async def summary(
        payload: SummaryRequest,
        pipeline: Pipeline = Depends(get_pipeline),
    ) -> SummaryResponse:
        text = await _run_blocking(
            lambda: pipeline.summaries.summarize(
                payload.code,
                payload.type,
                entity_name=payload.entity_name,
                file_path=payload.file_path,
            )
        )
        return SummaryResponse(summary=text)

    @app.exception_handler(CloneError)
    async def clone_error_handler(_: Any, exc: CloneError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(RepographError)
    async def repograph_error_handler(_: Any, exc: RepographError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install repograph[service]`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)
