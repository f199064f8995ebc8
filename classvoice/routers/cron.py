# classvoice/routers/cron.py
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classvoice.core.clock import get_now
from classvoice.core.database import get_db
from classvoice.core.dependencies import verify_cron_secret
from classvoice.schemas.maintenance import AutoEndResponse, AutoSummarizeResponse
from classvoice.services.maintenance import MaintenanceService
from classvoice.utils.ai import get_summarizer

# Called by an external timer; both jobs are safe to run repeatedly
router = APIRouter(
    prefix="/cron",
    tags=["Cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.api_route(
    "/check-lecture-end", methods=["GET", "POST"], response_model=AutoEndResponse
)
def check_lecture_end(
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """End active lectures whose scheduled end time has passed."""
    return MaintenanceService(db).run_auto_end(now=now)


@router.api_route(
    "/summarize-lectures",
    methods=["GET", "POST"],
    response_model=AutoSummarizeResponse,
)
async def summarize_lectures(
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    summarizer=Depends(get_summarizer),
):
    """Summarize lectures that ended more than the configured delay ago."""
    return await MaintenanceService(db, summarizer).run_auto_summarize(now=now)
