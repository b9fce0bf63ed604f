import json
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from reel_core.catalog.models import ClipType
from reel_core.config_manager import ConfigManager
from reel_core.errors import (
    BatchExportError,
    EngineError,
    InitializationError,
    InsufficientInput,
    MissingSource,
    NotReady,
    ReelError,
)
from reel_core.export.models import BatchPolicy
from reel_core.pipeline import PipelineManager
from reel_core.utils.logger import InterceptHandler

load_dotenv()

logging.getLogger("uvicorn").handlers = [InterceptHandler()]
logging.getLogger("uvicorn.access").handlers = [InterceptHandler()]

STATUS_BY_ERROR = {
    InsufficientInput: 400,
    MissingSource: 409,
    NotReady: 503,
    EngineError: 500,
    InitializationError: 500,
    BatchExportError: 500,
}

MEDIA_TYPES = {"mp4": "video/mp4", "mov": "video/quicktime", "webm": "video/webm", "mkv": "video/x-matroska"}


# --- Data Models ---
class ClipIn(BaseModel):
    path: str
    type: ClipType = ClipType.SELLING_POINT


class RetagIn(BaseModel):
    type: ClipType


def clip_view(clip) -> dict:
    return {"id": clip.id, "name": clip.name, "duration": clip.duration, "type": clip.type.value}


def sequence_view(sequence) -> dict:
    return {
        "id": sequence.id,
        "duration": sequence.duration,
        "label": sequence.label(),
        "clips": [clip_view(c) for c in sequence.clips],
    }


def start_engine_thread(manager: PipelineManager) -> threading.Thread:
    def _init():
        try:
            manager.start_engine()
        except ReelError as e:
            logger.error(f"ENGINE ERROR: {e}")

    thread = threading.Thread(target=_init, daemon=True, name="engine-init")
    thread.start()
    return thread


def create_app(manager: Optional[PipelineManager] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.manager is None:
            app.state.manager = PipelineManager(ConfigManager())
        start_engine_thread(app.state.manager)
        yield
        app.state.manager.shutdown()

    app = FastAPI(title="ReelSequencer Backend", lifespan=lifespan)
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_manager() -> PipelineManager:
        if app.state.manager is None:
            raise NotReady("Server is still starting")
        return app.state.manager

    @app.exception_handler(ReelError)
    async def reel_error_handler(request: Request, exc: ReelError):
        status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)
        logger.error(f"{request.method} {request.url.path} -> {status}: {exc}")
        return JSONResponse(status_code=status, content={"detail": exc.to_dict()})

    @app.get("/health")
    async def health_check():
        mgr = app.state.manager
        state = mgr.engine.state.value if mgr else "uninitialized"
        return {"status": "ok", "engine": state}

    # --- Clips ---
    @app.get("/clips")
    def list_clips():
        return {"clips": [clip_view(c) for c in get_manager().catalog.snapshot()]}

    @app.post("/clips")
    def add_clip(payload: ClipIn):
        try:
            clip = get_manager().ingest(payload.path, payload.type)
        except (FileNotFoundError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return clip_view(clip)

    @app.patch("/clips/{clip_id}")
    def retag_clip(clip_id: str, payload: RetagIn):
        mgr = get_manager()
        mgr.retag(clip_id, payload.type)
        clip = mgr.catalog.get(clip_id)
        return clip_view(clip) if clip else {"id": clip_id, "status": "absent"}

    @app.delete("/clips/{clip_id}")
    def remove_clip(clip_id: str):
        get_manager().remove_clip(clip_id)
        return {"status": "removed", "id": clip_id}

    @app.delete("/clips")
    def clear_clips():
        get_manager().clear_clips()
        return {"status": "cleared"}

    # --- Sequences ---
    @app.post("/sequences/generate")
    def generate_sequences():
        sequences = get_manager().generate()
        return {"sequences": [sequence_view(s) for s in sequences]}

    @app.get("/sequences")
    def list_sequences():
        return {"sequences": [sequence_view(s) for s in get_manager().sequences.all()]}

    @app.delete("/sequences/{sequence_id}")
    def remove_sequence(sequence_id: str):
        get_manager().remove_sequence(sequence_id)
        return {"status": "removed", "id": sequence_id}

    @app.post("/sequences/{sequence_id}/export")
    def export_sequence(sequence_id: str):
        mgr = get_manager()
        try:
            artifact = mgr.export_sequence(sequence_id)
        except KeyError as e:
            raise HTTPException(status_code=404, detail=f"Unknown sequence: {sequence_id}") from e
        ext = artifact.name.rsplit(".", 1)[-1]
        return Response(
            content=artifact.data,
            media_type=MEDIA_TYPES.get(ext, "application/octet-stream"),
            headers={"Content-Disposition": f'attachment; filename="{artifact.name}"'},
        )

    @app.post("/sequences/export")
    def export_all(policy: Optional[BatchPolicy] = None):
        mgr = get_manager()
        try:
            result = mgr.export_all(policy=policy)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return Response(
            content=result.archive,
            media_type="application/zip",
            headers={
                "Content-Disposition": f'attachment; filename="{result.archive_name}"',
                "X-Export-Failures": json.dumps([f.model_dump() for f in result.failures]),
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
