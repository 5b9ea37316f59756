from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from contentflow.celery_config import get_task_info
from contentflow.models import (
    FormattedSummary,
    SummarizeRequest,
    SummarizeResponse,
    SummarizeStatusResponse,
    SummaryResponse,
)
from contentflow.status import FailureKind, TaskStatus
from contentflow.tasks import trigger_content_summarization
from contentflow.workers.storage import SummaryStorage

logger = logging.getLogger(__name__)

router = APIRouter()


def get_summary_storage(request: Request) -> SummaryStorage:
    storage = getattr(request.app.state, "summary_storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="content store not configured")
    return storage


def get_trigger() -> Callable[..., Dict[str, Any]]:
    return trigger_content_summarization


def get_task_lookup() -> Callable[[str], Dict[str, Any]]:
    return get_task_info


@router.post("/summarize", response_model=SummarizeResponse, status_code=202)
def summarize(
    payload: SummarizeRequest,
    trigger: Callable[..., Dict[str, Any]] = Depends(get_trigger),
):
    result = trigger(payload.to_reference(), user_id=payload.user_id)
    if not result.get("success"):
        logger.warning(
            "Summarization trigger failed",
            extra={"content_id": payload.content_id, "error": result.get("error")},
        )
        body = SummarizeResponse(
            success=False,
            message=result.get("message", "Failed to start summarization workflow"),
            error=result.get("error"),
        )
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))

    return SummarizeResponse(
        success=True,
        message=result.get("message", "Summarization workflow started successfully"),
        event_id=result.get("eventId"),
    )


@router.get("/summarize/status/{task_id}", response_model=SummarizeStatusResponse)
def summarize_status(
    task_id: str,
    lookup: Callable[[str], Dict[str, Any]] = Depends(get_task_lookup),
):
    info = lookup(task_id)
    status = TaskStatus.from_celery(info.get("status", "PENDING"))

    summary_id = None
    result = info.get("result")
    if isinstance(result, dict):
        summary_id = result.get("summary_id")

    return SummarizeStatusResponse(
        task_id=task_id,
        status=status,
        summary_id=summary_id,
        failure_kind=info.get("failure_kind"),
        error=info.get("error"),
    )


@router.get("/summary/{content_id}", response_model=SummaryResponse)
def get_summary(
    content_id: str,
    storage: SummaryStorage = Depends(get_summary_storage),
):
    document = storage.get_summary(content_id)
    if document is None:
        # Absence means the summary has not been generated yet
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "status": FailureKind.NOT_GENERATED.value,
                "error": "Summary not found",
            },
        )
    return SummaryResponse(summary=FormattedSummary.from_document(document))
