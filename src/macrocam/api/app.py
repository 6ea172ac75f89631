"""FastAPI application factory for the estimation server."""

import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from macrocam.app_logging import configure_logging
from macrocam.containers import AppContainer
from macrocam.domain.errors import UpstreamMalformed


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    upload_dir = Path(container.settings.upload_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        upload_dir.mkdir(parents=True, exist_ok=True)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        """Simple health check endpoint."""
        return {"ok": True}

    @app.post("/estimate")
    async def estimate(request: Request) -> JSONResponse:
        """Estimate calories and protein for an uploaded photo."""
        state_container: AppContainer = request.app.state.container
        spooled: Path | None = None
        try:
            form = await request.form()
            photo = form.get("photo")
            if photo is None or isinstance(photo, str):
                return JSONResponse(status_code=400, content={"error": "Missing photo"})
            spooled = await _spool_upload(photo, upload_dir)
            image_bytes = spooled.read_bytes()
            result = await state_container.estimation_service.estimate(image_bytes)
            return JSONResponse(content=result.to_wire())
        except UpstreamMalformed as exc:
            logger.warning("Vision model returned unreadable output")
            return JSONResponse(
                status_code=500,
                content={"error": "Model did not return JSON", "raw": exc.raw},
            )
        except Exception as exc:
            logger.exception("Photo estimation failed")
            return JSONResponse(
                status_code=500,
                content={"error": "Server error", "details": str(exc)},
            )
        finally:
            if spooled is not None:
                spooled.unlink(missing_ok=True)

    return app


async def _spool_upload(photo: UploadFile, upload_dir: Path) -> Path:
    """Write an upload to a per-request temporary file and return its path."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        dir=upload_dir, prefix="photo-", suffix=".jpg", delete=False
    ) as handle:
        path = Path(handle.name)
        try:
            while chunk := await photo.read(1024 * 1024):
                handle.write(chunk)
        except BaseException:
            handle.close()
            path.unlink(missing_ok=True)
            raise
    return path
