# backend/app/api/analyze.py
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from gateway_inspector.app.run import run_once
from gateway_inspector.errors import ProcessError
from gateway_inspector.reporting.categories import BY_ACTION_TYPE, category_table
from backend.app.status import analysis_status_store

router = APIRouter()


@router.post("/analyze")
async def analyze_endpoint(file: UploadFile = File(...)) -> dict:
    if not file.filename or not file.filename.endswith(".zip"):
        raise HTTPException(status_code=400, detail="Please upload a backup zip file.")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty upload.")

    analysis_status_store.update(
        state="running",
        step="starting",
        detail="Starting analysis",
        backup_file=file.filename,
        metrics={},
        summary=None,
    )

    def progress_cb(step: str, event: dict[str, Any]) -> None:
        status_update: dict[str, Any] = {
            "state": "running",
            "step": step,
            "detail": event.get("detail"),
        }
        if "metrics" in event:
            status_update["metrics"] = event.get("metrics") or {}
        analysis_status_store.update(**status_update)

    with tempfile.TemporaryDirectory() as tmp:
        backup_path = Path(tmp) / Path(file.filename).name
        backup_path.write_bytes(content)
        try:
            # Parsing is blocking, run it in a worker thread so FastAPI stays responsive.
            result = await run_in_threadpool(
                run_once,
                backup_file=backup_path,
                output_path=None,
                progress_cb=progress_cb,
            )
        except ProcessError as exc:
            analysis_status_store.update(state="error", step="error", detail=str(exc))
            analysis_status_store.record_error({"backup_file": file.filename, "error": str(exc)})
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            analysis_status_store.update(state="error", step="error", detail=str(exc))
            analysis_status_store.record_error(
                {"backup_file": file.filename, "error": f"{type(exc).__name__}: {exc}"}
            )
            raise

    analysis_status_store.update(
        state="done",
        step="done",
        detail="Analysis completed",
        summary=result["summary"],
    )
    return {"ok": True, **result}


@router.get("/analyze/status")
async def analyze_status() -> dict:
    return {"ok": True, "status": analysis_status_store.snapshot()}


@router.get("/categories")
async def categories() -> dict:
    return {
        "ok": True,
        "categories": category_table(),
        "by_action_type": dict(BY_ACTION_TYPE),
    }
