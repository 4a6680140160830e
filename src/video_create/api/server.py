"""Contract-first API endpoints for the composition and the export hand-off."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from video_create.api.schemas import (
    AddItemRequest,
    AddItemResponse,
    CompositionResponse,
    DeleteItemResponse,
    DuplicateItemResponse,
    ExportJobResponse,
    ExportMessageRequest,
    ExportRequest,
    HistoryResponse,
    ItemView,
    PlaybackRequest,
    PlayheadRequest,
    PlayheadResponse,
    SelectionRequest,
    UpdateItemRequest,
    UpdateItemResponse,
)
from video_create.config import EditorSettings, configure_logging
from video_create.project.codec import item_to_record
from video_create.services.export import ExportClient, ExportError, ExportJob, ExportService, ExportSettings
from video_create.timeline.facade import Editor
from video_create.timeline.models import Geometry, ItemDraft, Position, Typography

logger = logging.getLogger(__name__)


def create_app(
    editor: Editor | None = None,
    export_service: ExportService | None = None,
) -> FastAPI:
    settings = editor.settings if editor is not None else EditorSettings.from_env()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        yield

    app = FastAPI(title="video-create API", version="0.1.0", lifespan=lifespan)
    session = editor or Editor(settings=settings)
    exporter = export_service or ExportService(client=ExportClient(base_url=settings.api_base_url))

    @app.get("/")
    def root() -> dict[str, str]:
        return {
            "service": "video-create API",
            "status": "ok",
            "docs": "/docs",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> Response:
        return Response(status_code=204)

    @app.get("/v1/composition", response_model=CompositionResponse)
    def get_composition() -> CompositionResponse:
        return _composition_response(session)

    @app.post("/v1/items", response_model=AddItemResponse)
    def add_item(payload: AddItemRequest) -> AddItemResponse:
        try:
            draft = _draft_from_request(payload)
            item_id = session.add_item(draft, select=payload.select)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        item = session.state.get(item_id)
        assert item is not None
        return AddItemResponse(item_id=item_id, track=item.track)

    @app.patch("/v1/items/{item_id}", response_model=UpdateItemResponse)
    def update_item(item_id: str, payload: UpdateItemRequest) -> UpdateItemResponse:
        changes = payload.model_dump(exclude_none=True)
        try:
            updated = session.update_item(item_id, **changes)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return UpdateItemResponse(updated=updated)

    @app.delete("/v1/items/{item_id}", response_model=DeleteItemResponse)
    def delete_item(item_id: str) -> DeleteItemResponse:
        return DeleteItemResponse(deleted=session.remove_item(item_id))

    @app.post("/v1/items/{item_id}/duplicate", response_model=DuplicateItemResponse)
    def duplicate_item(item_id: str) -> DuplicateItemResponse:
        copy_id = session.store.duplicate_item(item_id)
        if copy_id is None:
            raise HTTPException(status_code=404, detail=f"item '{item_id}' not found")
        return DuplicateItemResponse(item_id=copy_id)

    @app.post("/v1/selection", response_model=CompositionResponse)
    def set_selection(payload: SelectionRequest) -> CompositionResponse:
        session.select(payload.item_id)
        return _composition_response(session)

    @app.post("/v1/playhead", response_model=PlayheadResponse)
    def set_playhead(payload: PlayheadRequest) -> PlayheadResponse:
        return PlayheadResponse(current_time=session.seek(payload.time))

    @app.post("/v1/playback", response_model=CompositionResponse)
    def set_playback(payload: PlaybackRequest) -> CompositionResponse:
        if payload.playing:
            session.play()
        else:
            session.pause()
        return _composition_response(session)

    @app.post("/v1/undo", response_model=HistoryResponse)
    def undo() -> HistoryResponse:
        return HistoryResponse(applied=session.undo())

    @app.post("/v1/redo", response_model=HistoryResponse)
    def redo() -> HistoryResponse:
        return HistoryResponse(applied=session.redo())

    @app.post("/v1/export", response_model=ExportJobResponse)
    def submit_export(payload: ExportRequest) -> ExportJobResponse:
        export_settings = ExportSettings(
            quality=payload.quality,
            format=payload.format,
            resolution=payload.resolution,
        )
        try:
            job = exporter.submit(session.state, export_settings)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ExportError as exc:
            logger.warning("export submission failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return _job_response(job)

    @app.get("/v1/export/{job_id}", response_model=ExportJobResponse)
    def get_export(job_id: str) -> ExportJobResponse:
        job = exporter.get_job(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"export job '{job_id}' not found")
        return _job_response(job)

    @app.post("/v1/export/messages", response_model=ExportJobResponse)
    def push_export_message(payload: ExportMessageRequest) -> ExportJobResponse:
        job = exporter.handle_message(payload.message)
        if job is None:
            raise HTTPException(status_code=400, detail="message does not belong to a tracked export job")
        return _job_response(job)

    return app


def _draft_from_request(payload: AddItemRequest) -> ItemDraft:
    geometry: Geometry | None = None
    typography: Typography | None = None
    if payload.geometry is not None:
        geometry = Geometry(
            position=Position(payload.geometry.position.x, payload.geometry.position.y),
            width=payload.geometry.width,
            height=payload.geometry.height,
            rotation=payload.geometry.rotation,
        )
    if payload.typography is not None:
        typography = Typography(**payload.typography.model_dump())
    return ItemDraft(
        kind=payload.kind,
        name=payload.name or payload.kind.title(),
        start_time=payload.start_time,
        end_time=payload.end_time,
        track=payload.track,
        media_ref=payload.media_ref,
        source_duration=payload.source_duration,
        mute=payload.mute,
        geometry=geometry,
        typography=typography,
    )


def _composition_response(editor: Editor) -> CompositionResponse:
    state = editor.state
    items: list[ItemView] = []
    for item in state.items:
        record = item_to_record(item)
        items.append(
            ItemView(
                item_id=record.item_id,
                kind=record.kind,
                name=record.name,
                start_time=record.start_time,
                end_time=record.end_time,
                track=record.track,
                media_ref=record.media_ref,
                mute=record.mute if item.kind in ("video", "audio") else None,
                geometry=record.geometry,
                typography=record.typography,
            )
        )
    return CompositionResponse(
        project_id=state.project_id,
        project_name=state.project_name,
        duration=state.duration,
        current_time=state.current_time,
        is_playing=state.is_playing,
        selected_id=state.selected_id,
        track_count=max(state.track_numbers(), default=-1) + 1,
        items=items,
        can_undo=editor.store.history.can_undo(),
        can_redo=editor.store.history.can_redo(),
    )


def _job_response(job: ExportJob) -> ExportJobResponse:
    return ExportJobResponse(
        job_id=job.job_id,
        status=job.status,
        estimated_size_mb=job.estimated_size_mb,
        last_message=job.last_message,
        output_ref=job.output_ref,
        reason=job.reason,
    )


app = create_app()
