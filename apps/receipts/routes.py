from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from config import APP_NAME
from .store import render_receipt

router = APIRouter(prefix="/api/v1/receipts", tags=["receipts"])


@router.get("/{token}", response_class=PlainTextResponse)
def get_receipt(token: str, request: Request):
    """Printable receipt for the tickets of one issuance"""
    job = request.app.state.queue_context.print_jobs.get(token)
    if job is None:
        raise HTTPException(status_code=404, detail="Print job not found or expired")
    return render_receipt(job, APP_NAME)
