"""FastAPI application exposing extraction, preview and live navigation."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, SiteCraftConfig, load_config
from ..export import read_files
from ..llm import ProviderError
from ..logging import get_logger
from ..models import ExtractedFile, PreviewResult, ProjectFileSet
from ..pipeline import GenerationOutcome, SiteGenerator, build_composer, build_extractor
from ..preview import DocumentComposer, NavigationHost, RuleError

_T = TypeVar("_T")

logger = get_logger("service")


class FilePayload(BaseModel):
    path: str = Field(min_length=1)
    content: str = ""


class ExtractRequest(BaseModel):
    raw: str
    cross_check: bool = True


class IssuePayload(BaseModel):
    kind: str
    detail: str
    path: Optional[str] = None


class FileResult(BaseModel):
    path: str
    content: str
    kind: str
    size: int


class ExtractResponse(BaseModel):
    files: List[FileResult]
    strategy: str
    issues: List[IssuePayload]
    description: Optional[str] = None


class PreviewRequest(BaseModel):
    files: List[FilePayload]
    target: Optional[str] = None
    hash: Optional[str] = None


class PreviewResponse(BaseModel):
    document: str
    target: Optional[str] = None
    available_pages: List[str]
    previewable: bool
    resources: List[str]
    issues: List[IssuePayload]


class NavigateRequest(BaseModel):
    message: Dict[str, Any]
    files: Optional[List[FilePayload]] = None
    current_page: Optional[str] = None


class NavigateResponse(BaseModel):
    accepted: bool
    remount: bool = False
    current_page: str = ""
    mount_key: int = 0
    available_pages: List[str] = Field(default_factory=list)
    document: Optional[str] = None
    hash: Optional[str] = None


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1)
    files: Optional[List[FilePayload]] = None
    image_count: int = 0


class GenerateResponse(ExtractResponse):
    changed: List[str]
    provider: str
    model: str


class ProjectResponse(BaseModel):
    current_page: str
    available_pages: List[str]
    mount_key: int
    files: List[FileResult]


class HealthResponse(BaseModel):
    status: str


class ServedProject:
    """A project directory previewed live by the host page at ``/``."""

    def __init__(self, root: Path, composer: DocumentComposer, *, sandbox: str) -> None:
        self.root = root
        self.host = NavigationHost(read_files(root), composer, sandbox=sandbox)
        self.lock = threading.Lock()
        self.host.load()


def _to_fileset(files: List[FilePayload]) -> ProjectFileSet:
    return ProjectFileSet(
        ExtractedFile.from_dict({"path": item.path, "content": item.content}) for item in files
    )


def _preview_response(preview: PreviewResult) -> PreviewResponse:
    return PreviewResponse(**preview.to_dict())


def _navigate_response(host: NavigationHost, accepted: bool, remount: bool, hash: str | None) -> NavigateResponse:
    return NavigateResponse(
        accepted=accepted,
        remount=remount,
        current_page=host.current_page,
        mount_key=host.mount_key,
        available_pages=list(host.available_pages),
        document=host.preview.document if remount and host.preview is not None else None,
        hash=hash,
    )


async def _run_blocking(func: Callable[[], _T]) -> _T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    generator_factory: Callable[[], SiteGenerator] | None = None,
    *,
    config: SiteCraftConfig | None = None,
    project: Path | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing sitecraft operations."""
    settings = config or load_config(project or Path.cwd())
    composer = build_composer(settings)
    served = ServedProject(project, composer, sandbox=settings.preview.sandbox) if project else None

    app = FastAPI(title="sitecraft", version="1.0.0")
    app.state.settings = settings
    app.state.project = served

    def _default_generator() -> SiteGenerator:
        return SiteGenerator.from_config(settings)

    factory = generator_factory or _default_generator

    async def get_generator() -> SiteGenerator:
        return factory()

    def get_project() -> ServedProject:
        if served is None:
            raise HTTPException(status_code=404, detail="No project is being served")
        return served

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/extract", response_model=ExtractResponse)
    async def extract(payload: ExtractRequest) -> ExtractResponse:
        extractor = build_extractor(settings)
        extractor.cross_check = payload.cross_check
        result = await _run_blocking(lambda: extractor.extract(payload.raw))
        return ExtractResponse(**result.to_dict())

    @app.post("/preview", response_model=PreviewResponse)
    async def preview(payload: PreviewRequest) -> PreviewResponse:
        files = _to_fileset(payload.files)
        result = composer.compose(files, payload.target, hash=payload.hash)
        return _preview_response(result)

    @app.post("/navigate", response_model=NavigateResponse)
    async def navigate(payload: NavigateRequest) -> NavigateResponse:
        if payload.files is None:
            current = get_project()
            with current.lock:
                outcome = current.host.handle(payload.message)
                return _navigate_response(current.host, outcome.accepted, outcome.remount, outcome.hash)

        host = NavigationHost(_to_fileset(payload.files), composer, sandbox=settings.preview.sandbox)
        if payload.current_page:
            host.load(payload.current_page)
        outcome = host.handle(payload.message)
        return _navigate_response(host, outcome.accepted, outcome.remount, outcome.hash)

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        generator: SiteGenerator = Depends(get_generator),
    ) -> GenerateResponse:
        def _run() -> GenerationOutcome:
            if payload.files:
                return generator.modify(payload.prompt, _to_fileset(payload.files))
            return generator.generate(payload.prompt, image_count=payload.image_count)

        outcome = await _run_blocking(_run)
        body = outcome.extraction.to_dict()
        body["files"] = outcome.files.to_list()
        return GenerateResponse(
            **body,
            changed=outcome.changed,
            provider=outcome.provider,
            model=outcome.model,
        )

    @app.get("/", response_class=HTMLResponse)
    async def host_page() -> HTMLResponse:
        current = get_project()
        with current.lock:
            title = settings.title or current.root.resolve().name or "sitecraft preview"
            return HTMLResponse(current.host.render_page(title=title, navigate_url="/navigate"))

    @app.get("/api/project", response_model=ProjectResponse)
    async def project_state() -> ProjectResponse:
        current = get_project()
        with current.lock:
            return ProjectResponse(
                current_page=current.host.current_page,
                available_pages=list(current.host.available_pages),
                mount_key=current.host.mount_key,
                files=current.host.files.to_list(),
            )

    @app.exception_handler(ProviderError)
    async def provider_error_handler(_: Any, exc: ProviderError) -> JSONResponse:
        logger.warning("Provider request failed: %s", exc)
        return JSONResponse(status_code=502, content={"detail": str(exc), "provider": exc.provider})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuleError)
    async def rule_error_handler(_: Any, exc: RuleError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    project: Path | None = None,
    config: SiteCraftConfig | None = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config, project=project)
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
