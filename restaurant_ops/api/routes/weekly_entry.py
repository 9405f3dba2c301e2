"""
Weekly Sales Entry API Routes
Thin HTTP wrapper around WeeklyEntryOrchestrator

Session Rules:
- One session per open entry dialog
- Gate prompts are returned in the session state; answer them via /actions
- A saved or cancelled session is released at once; later lookups return 404
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from restaurant_ops.domain.errors import SubmissionError, ValidationError
from restaurant_ops.domain.models import CategorySummary, GateAction, WeekSelection
from restaurant_ops.domain.schemas.weekly_entry import (
    CategorySummaryResponse,
    ChannelSchema,
    DayRecordSchema,
    EditDayRequest,
    GateActionResponse,
    LaborRateRequest,
    LaborRateSchema,
    OpenSessionRequest,
    PromptSchema,
    SessionStateResponse,
    SubmitResponse,
    SummaryRangeRequest,
    WeeklyTotalsSchema,
)
from restaurant_ops.domain.services.aggregation_engine import AggregationEngine
from restaurant_ops.domain.services.weekly_entry_orchestrator import SubmitOutcome, WeeklyEntryOrchestrator
from restaurant_ops.services.entry_session_service import EntrySessionService, SessionNotFound

router = APIRouter()


# -------------------------------------------------------------------
# Helper utilities
# -------------------------------------------------------------------

def get_session_service(request: Request) -> EntrySessionService:
    return request.app.state.entry_sessions


def _lookup(service: EntrySessionService, session_id: str) -> WeeklyEntryOrchestrator:
    try:
        return service.get(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


def _optional_float(value):
    return float(value) if value is not None else None


def serialize_state(session_id: str, orchestrator: WeeklyEntryOrchestrator) -> SessionStateResponse:
    providers = orchestrator.providers
    totals = orchestrator.totals
    week = orchestrator.week
    labor = orchestrator.labor_rate

    days = [
        DayRecordSchema(
            index=index,
            date=day.date,
            day=day.day_name,
            is_open=day.is_open,
            budgeted_sales=float(day.budgeted_sales),
            actual_sales={k: float(v) for k, v in day.actual_sales_by_source.items()},
            ticket_count=day.ticket_count,
            net_sales=float(AggregationEngine.net_sales(day, providers)),
            variance_percent=float(totals.variance_by_date.get(day.date, 0)),
        )
        for index, day in enumerate(orchestrator.days)
    ]

    return SessionStateResponse(
        session_id=session_id,
        is_open=orchestrator.is_open,
        submitting=orchestrator.submitting,
        gate=orchestrator.gate.value if orchestrator.gate else None,
        week_start=week.start_date if week else None,
        week_end=week.end_date if week else None,
        week_number=week.week_number if week else None,
        channels=[ChannelSchema(id=c.id, name=c.name) for c in providers.channels],
        days=days,
        totals=WeeklyTotalsSchema(
            budgeted_sales=float(totals.budgeted_sales),
            actual_sales={k: float(v) for k, v in totals.actual_sales_by_source.items()},
            net_sales_actual=float(totals.net_sales_actual),
            ticket_count=totals.ticket_count,
            average_ticket=totals.average_ticket,
            variance_percent=float(totals.variance_percent),
        ),
        labor_rate=LaborRateSchema(
            source=labor.source.value,
            rate=_optional_float(labor.rate),
            previous_week_rate=_optional_float(orchestrator.previous_week_rate),
            current_rate=_optional_float(orchestrator.current_rate),
        ),
        prompts=[
            PromptSchema(
                kind=p.kind.value,
                gate=p.gate.value if p.gate else None,
                day_index=p.day_index,
                offending_days=list(p.offending_days),
                detail=p.detail,
            )
            for p in orchestrator.prompts
        ],
    )


def serialize_outcome(outcome: SubmitOutcome) -> SubmitResponse:
    return SubmitResponse(
        status=outcome.status.value,
        gate=outcome.gate.value if outcome.gate else None,
        offending_days=list(outcome.offending_days),
        focus_day=outcome.focus_day,
        payload=outcome.payload,
    )


def serialize_summary(summary: CategorySummary, pending: bool) -> CategorySummaryResponse:
    return CategorySummaryResponse(
        range_key=summary.range_key,
        is_fallback=summary.is_fallback,
        pending=pending,
        categories=[{"label": c.label, "value": float(c.value)} for c in summary.categories],
    )


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------

@router.post("/sessions", response_model=SessionStateResponse, status_code=201)
async def open_session(
    request: OpenSessionRequest,
    service: EntrySessionService = Depends(get_session_service),
):
    week = WeekSelection(start_date=request.week_start, week_number=request.week_number)
    try:
        session_id, orchestrator = await service.open_session(week, request.existing_data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid existing data: {exc}")
    return serialize_state(session_id, orchestrator)


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str, service: EntrySessionService = Depends(get_session_service)):
    return serialize_state(session_id, _lookup(service, session_id))


@router.post("/sessions/{session_id}/actions/{action}", response_model=GateActionResponse)
async def resolve_action(
    session_id: str,
    action: GateAction,
    service: EntrySessionService = Depends(get_session_service),
):
    orchestrator = _lookup(service, session_id)
    try:
        result = await orchestrator.resolve(action)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail={"code": exc.code.value, "message": exc.message})
    except SubmissionError as exc:
        raise HTTPException(status_code=502, detail=exc.message)

    transition = result.transition
    return GateActionResponse(
        accepted=transition.accepted,
        previous=transition.previous.value,
        current=transition.current.value,
        cancelled=transition.cancelled,
        focus_day=transition.focus_day,
        offending_days=list(transition.offending_days),
        manual_rate_requested=result.manual_rate_requested,
        submission=serialize_outcome(result.submission) if result.submission else None,
    )


@router.patch("/sessions/{session_id}/days/{day_index}", response_model=SessionStateResponse)
async def edit_day(
    session_id: str,
    day_index: int,
    request: EditDayRequest,
    service: EntrySessionService = Depends(get_session_service),
):
    orchestrator = _lookup(service, session_id)
    rejected = orchestrator.set_field(day_index, request.field, request.value, request.channel_id)
    if rejected is not None:
        raise HTTPException(
            status_code=409,
            detail={"day_index": rejected.day_index, "field": rejected.field, "reason": rejected.reason},
        )
    return serialize_state(session_id, orchestrator)


@router.put("/sessions/{session_id}/labor-rate", response_model=SessionStateResponse)
async def set_labor_rate(
    session_id: str,
    request: LaborRateRequest,
    service: EntrySessionService = Depends(get_session_service),
):
    orchestrator = _lookup(service, session_id)
    if not orchestrator.set_labor_rate(request.rate):
        raise HTTPException(status_code=409, detail="Session is closed")
    return serialize_state(session_id, orchestrator)


@router.put("/sessions/{session_id}/summary-range", response_model=CategorySummaryResponse, status_code=202)
async def change_summary_range(
    session_id: str,
    request: SummaryRangeRequest,
    service: EntrySessionService = Depends(get_session_service),
):
    orchestrator = _lookup(service, session_id)
    if request.end_date < request.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    orchestrator.on_range_change(request.start_date, request.end_date)
    return serialize_summary(orchestrator.summary, orchestrator.summary_cache.pending)


@router.get("/sessions/{session_id}/category-summary", response_model=CategorySummaryResponse)
async def get_category_summary(
    session_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: EntrySessionService = Depends(get_session_service),
):
    orchestrator = _lookup(service, session_id)
    if (start_date is None) != (end_date is None):
        raise HTTPException(status_code=400, detail="start_date and end_date go together")
    if start_date is not None:
        if end_date < start_date:
            raise HTTPException(status_code=400, detail="end_date must not be before start_date")
        summary = await orchestrator.fetch_summary(start_date, end_date)
        return serialize_summary(summary, orchestrator.summary_cache.pending)
    return serialize_summary(orchestrator.summary, orchestrator.summary_cache.pending)


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit(session_id: str, service: EntrySessionService = Depends(get_session_service)):
    orchestrator = _lookup(service, session_id)
    try:
        outcome = await orchestrator.submit()
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail={"code": exc.code.value, "message": exc.message})
    except SubmissionError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
    return serialize_outcome(outcome)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, service: EntrySessionService = Depends(get_session_service)):
    try:
        service.close(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
