from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pydantic import BaseModel, Field
from starlette.datastructures import UploadFile

from assistant.claude import build_http_client, call_claude
from assistant.core.prompt import (
    CONNECT_ERROR_REPLY,
    MISSING_KEY_REPLY,
    UPSTREAM_ERROR_PREFIX,
)
from assistant.errors import ConfigurationError, TransportError, UploadError, UpstreamError
from assistant.uploads import first_value, normalize_topic, save_upload
from config.settings import Settings, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("pnwer")

app = FastAPI(title="PNWER AI Chat", version="1.0.0")

# CORS: allow local frontend during development
settings = get_settings()
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ClaudeRequest(BaseModel):
    messages: Any = Field(
        default_factory=list,
        description="Conversation turns forwarded to Claude as-is, never validated here",
    )
    preprompt: Optional[str] = Field(None, description="System prompt for this call")


def get_upstream_client(
    settings: Settings = Depends(get_settings),
) -> Iterator[httpx.Client]:
    client = build_http_client(settings)
    try:
        yield client
    finally:
        client.close()


@app.post("/api/claude")
def claude(
    req: ClaudeRequest,
    settings: Settings = Depends(get_settings),
    client: httpx.Client = Depends(get_upstream_client),
):
    try:
        logger.info(
            "Incoming claude call: model=%s messages=%s preprompt_len=%s",
            settings.claude_model,
            len(req.messages) if isinstance(req.messages, list) else type(req.messages).__name__,
            len(req.preprompt or ""),
        )
        reply = call_claude(req.messages, req.preprompt, client=client, settings=settings)
    except ConfigurationError:
        logger.error("[Claude Error] Missing API key")
        return JSONResponse(status_code=500, content={"reply": MISSING_KEY_REPLY})
    except UpstreamError as e:
        logger.error("[Claude API error] %s", e.message)
        return JSONResponse(
            status_code=500, content={"reply": f"{UPSTREAM_ERROR_PREFIX} {e.message}"}
        )
    except TransportError as e:
        logger.exception("[Claude API Error] %s", e)
        return JSONResponse(status_code=500, content={"reply": CONNECT_ERROR_REPLY})
    except Exception as e:
        logger.exception("[Claude API Error] Unexpected failure: %s", e)
        return JSONResponse(status_code=500, content={"reply": CONNECT_ERROR_REPLY})

    logger.info("Claude responded with %s chars", len(reply))
    return {"reply": reply}


UPLOAD_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


@app.api_route("/api/upload", methods=UPLOAD_METHODS)
async def upload(request: Request, settings: Settings = Depends(get_settings)):
    if request.method != "POST":
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})

    try:
        form = await request.form()
    except Exception as e:
        logger.exception("[Upload Error] %s", e)
        return JSONResponse(status_code=500, content={"error": "Upload failed"})

    try:
        file = first_value(form.getlist("file"))
        topic = normalize_topic(form.getlist("topic"))

        if not isinstance(file, UploadFile):
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})

        try:
            stored = await run_in_threadpool(
                save_upload,
                file.file,
                file.filename,
                topic,
                upload_dir=settings.upload_dir,
                max_bytes=settings.upload_max_bytes,
            )
        except UploadError as e:
            logger.error("[Upload Error] %s", e)
            return JSONResponse(status_code=500, content={"error": "Upload failed"})

        return {"success": True, "file": stored.to_response()}
    finally:
        await form.close()


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
