"""FastAPI entrypoint and HTTP routes."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from nebula.api.auth import InternalAuthDependency
from nebula.api.schemas import (
    CheckOut,
    CredentialIn,
    ExportOut,
    GenerateIn,
    GenerateOut,
    GenerationStateOut,
    ThemeIn,
    ThemeOut,
    WallpaperMeta,
)
from nebula.config.settings import get_settings
from nebula.imggen.errors import (
    BusyError,
    DecodeError,
    DownloadError,
    MissingCredentialError,
    ProviderError,
    StorageError,
    ValidationError,
    WallpaperGenerationError,
)
from nebula.imggen.postproc import media_type_for
from nebula.imggen.prompt_builder import PromptSource
from nebula.imggen.themes import PRESETS
from nebula.integrations.checks import check_provider
from nebula.monitoring.logging import configure_logging
from nebula.runtime import NebulaRuntime, build_runtime
from nebula.secrets.keychain import API_KEY_NAME, CredentialStoreError
from nebula.services.export import export_wallpaper

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[WallpaperGenerationError], int] = {
    ValidationError: 422,
    MissingCredentialError: status.HTTP_401_UNAUTHORIZED,
    BusyError: status.HTTP_409_CONFLICT,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
    DownloadError: status.HTTP_502_BAD_GATEWAY,
    DecodeError: status.HTTP_502_BAD_GATEWAY,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_runtime(request: Request) -> NebulaRuntime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting.")
    return runtime


def _status_for(error: WallpaperGenerationError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _read_credential(runtime: NebulaRuntime) -> str | None:
    return await asyncio.to_thread(runtime.credential)


def create_app(runtime: NebulaRuntime | None = None) -> FastAPI:
    """Initialise the FastAPI application. A prepared ``runtime`` is used as-is."""

    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = runtime is None
        active = runtime or build_runtime(settings)
        if owned:
            configure_logging(settings)
        await active.store.restore()
        app.state.runtime = active
        try:
            yield
        finally:
            app.state.runtime = None
            if owned:
                await active.close()

    app = FastAPI(
        title="Nebula Wallpaper API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.get("/metrics", tags=["system"])
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/themes", tags=["wallpaper"], response_model=list[ThemeOut])
    async def list_themes() -> list[ThemeOut]:
        return [
            ThemeOut(name=theme.name, description=theme.description, requires_prompt=theme.requires_prompt)
            for theme in PRESETS
        ]

    @app.get("/wallpaper", tags=["wallpaper"])
    async def current_wallpaper(runtime: NebulaRuntime = Depends(get_runtime)) -> Response:
        wallpaper = runtime.store.get()
        if wallpaper is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No wallpaper generated yet.")
        return Response(
            content=wallpaper.image,
            media_type=media_type_for(wallpaper.format),
            headers={"Last-Modified": wallpaper.timestamp.strftime("%a, %d %b %Y %H:%M:%S GMT")},
        )

    @app.get("/wallpaper/meta", tags=["wallpaper"], response_model=WallpaperMeta)
    async def wallpaper_meta(runtime: NebulaRuntime = Depends(get_runtime)) -> WallpaperMeta:
        wallpaper = runtime.store.get()
        if wallpaper is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No wallpaper generated yet.")
        return WallpaperMeta(
            timestamp=wallpaper.timestamp,
            size_bytes=len(wallpaper.image),
            media_type=media_type_for(wallpaper.format),
        )

    @app.post("/wallpaper/export", tags=["wallpaper"], response_model=ExportOut)
    async def export_current(runtime: NebulaRuntime = Depends(get_runtime)) -> ExportOut:
        if not runtime.settings.export_dir:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Export is not configured.")
        try:
            path = await export_wallpaper(runtime.store, Path(runtime.settings.export_dir))
        except LookupError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return ExportOut(path=str(path))

    @app.get("/generation", tags=["generation"], response_model=GenerationStateOut)
    async def generation_state(runtime: NebulaRuntime = Depends(get_runtime)) -> GenerationStateOut:
        return GenerationStateOut(**runtime.orchestrator.state.as_dict())

    @app.post("/generation", tags=["generation"], response_model=GenerateOut)
    async def generate(body: GenerateIn, runtime: NebulaRuntime = Depends(get_runtime)) -> GenerateOut:
        if body.prompt is not None:
            source = PromptSource.custom(body.prompt)
        else:
            source = PromptSource.from_theme(body.theme or "")
        credential = await _read_credential(runtime)
        result = await runtime.orchestrator.generate(source, credential, orientation=body.orientation)
        if result.error is not None:
            raise HTTPException(status_code=_status_for(result.error), detail=str(result.error))
        return GenerateOut(
            timestamp=result.generated_at,
            size_bytes=len(result.image),
            prompt=result.prompt,
            format=result.info.format,
            media_type=media_type_for(result.info.format),
            width=result.info.width,
            height=result.info.height,
        )

    @app.put("/preferences/theme", tags=["preferences"], response_model=ThemeIn)
    async def select_theme(body: ThemeIn, runtime: NebulaRuntime = Depends(get_runtime)) -> ThemeIn:
        try:
            name = await runtime.preferences.set_selected_theme(body.theme)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return ThemeIn(theme=name)

    @app.put("/credential", tags=["credential"], status_code=status.HTTP_204_NO_CONTENT, dependencies=[InternalAuthDependency])
    async def set_credential(body: CredentialIn, runtime: NebulaRuntime = Depends(get_runtime)) -> Response:
        try:
            await asyncio.to_thread(runtime.credentials.store, API_KEY_NAME, body.api_key)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except CredentialStoreError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.delete("/credential", tags=["credential"], status_code=status.HTTP_204_NO_CONTENT, dependencies=[InternalAuthDependency])
    async def delete_credential(runtime: NebulaRuntime = Depends(get_runtime)) -> Response:
        try:
            removed = await asyncio.to_thread(runtime.credentials.erase, API_KEY_NAME)
        except CredentialStoreError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        if not removed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No API key stored.")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/credential/check", tags=["credential"], response_model=CheckOut, dependencies=[InternalAuthDependency])
    async def check_credential(runtime: NebulaRuntime = Depends(get_runtime)) -> CheckOut:
        credential = await _read_credential(runtime)
        result = await check_provider(credential, runtime.settings)
        return CheckOut(name=result.name, success=result.success, message=result.message)

    return app


app = create_app()
