"""FastAPI application exposing ingestion, search and answers."""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from docanswer.config import AppConfig
from docanswer.services import Services, build_services

LOGGER = logging.getLogger(__name__)


class AnswerPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: Optional[str] = Field(default=None, alias="projectId")
    question: str = Field(min_length=3)
    top_k: Optional[int] = Field(default=None, alias="topK", ge=1, le=10)


def get_services(request: Request) -> Services:
    """Return the process-wide services, building them on first use."""
    state = request.app.state
    with state.services_lock:
        if state.services is None:
            state.services = build_services(state.config, base_dir=Path.cwd())
        return state.services


def create_app(config: AppConfig | None = None) -> FastAPI:
    app = FastAPI(title="docanswer", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config or AppConfig.from_env()
    app.state.services = None
    app.state.services_lock = threading.Lock()

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"errors": jsonable_encoder(exc.errors())})

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if app.state.services is not None:
            app.state.services.close()
            app.state.services = None

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/upload/doc", status_code=201)
    async def upload_document(
        file: UploadFile = File(...),
        project_id: Optional[str] = Form(default=None, alias="projectId"),
        services: Services = Depends(get_services),
    ) -> dict[str, Any]:
        buffer = await file.read()
        filename = file.filename or "upload"
        try:
            result = await asyncio.to_thread(
                services.ingestor.ingest,
                buffer,
                file.content_type,
                filename,
                project_id=project_id or None,
            )
        except Exception as exc:
            LOGGER.exception("Failed to ingest %s: %s", filename, exc)
            raise HTTPException(status_code=500, detail="Failed to ingest document") from exc
        return {"document": result.to_dict()}

    @app.get("/docs/search")
    async def search_documents(
        q: str = Query(default=""),
        k: int = Query(default=5),
        project_id: Optional[str] = Query(default=None, alias="projectId"),
        services: Services = Depends(get_services),
    ) -> dict[str, Any]:
        if not q.strip():
            raise HTTPException(status_code=400, detail="q parameter is required")
        limit = max(1, min(k, 20))
        results = services.searcher.search(q, project_id=project_id, limit=limit)
        return {"results": [result.to_dict() for result in results]}

    @app.post("/answer")
    async def answer_question(
        payload: AnswerPayload, services: Services = Depends(get_services)
    ) -> dict[str, Any]:
        if not payload.question.strip():
            raise HTTPException(status_code=400, detail="question must not be blank")
        response = services.answers.answer(
            payload.question, project_id=payload.project_id, top_k=payload.top_k
        )
        return {"answer": response.to_dict()}

    @app.get("/documents")
    async def list_documents(
        project_id: Optional[str] = Query(default=None, alias="projectId"),
        services: Services = Depends(get_services),
    ) -> dict[str, Any]:
        documents = services.store.list_documents(project_id)
        return {
            "documents": [doc.to_dict() for doc in documents],
            "stats": services.store.get_stats(),
        }

    @app.delete("/documents/{document_id}")
    async def delete_document(
        document_id: str, services: Services = Depends(get_services)
    ) -> dict[str, Any]:
        exists, project_id = services.store.get_document_project(document_id)
        if not exists or not services.store.delete_document(document_id):
            raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
        services.cache.invalidate(project_id)
        return {"status": "ok", "deleted_id": document_id}

    return app
