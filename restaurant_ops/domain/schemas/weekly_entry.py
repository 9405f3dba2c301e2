from pydantic import BaseModel, Field
from datetime import date
from typing import Any, Dict, List, Optional

from restaurant_ops.domain.models import DayField


class OpenSessionRequest(BaseModel):
    week_start: date
    week_number: Optional[int] = None
    existing_data: Optional[List[Dict[str, Any]]] = None


class ChannelSchema(BaseModel):
    id: str
    name: str


class DayRecordSchema(BaseModel):
    index: int
    date: date
    day: str
    is_open: bool
    budgeted_sales: float
    actual_sales: Dict[str, float]
    ticket_count: int
    net_sales: float
    variance_percent: float


class WeeklyTotalsSchema(BaseModel):
    budgeted_sales: float
    actual_sales: Dict[str, float]
    net_sales_actual: float
    ticket_count: int
    average_ticket: int
    variance_percent: float


class LaborRateSchema(BaseModel):
    source: str
    rate: Optional[float] = None
    previous_week_rate: Optional[float] = None
    current_rate: Optional[float] = None


class PromptSchema(BaseModel):
    kind: str
    gate: Optional[str] = None
    day_index: Optional[int] = None
    offending_days: List[int] = Field(default_factory=list)
    detail: Dict[str, Any] = Field(default_factory=dict)


class SessionStateResponse(BaseModel):
    session_id: str
    is_open: bool
    submitting: bool
    gate: Optional[str] = None
    week_start: Optional[date] = None
    week_end: Optional[date] = None
    week_number: Optional[int] = None
    channels: List[ChannelSchema] = Field(default_factory=list)
    days: List[DayRecordSchema] = Field(default_factory=list)
    totals: WeeklyTotalsSchema
    labor_rate: LaborRateSchema
    prompts: List[PromptSchema] = Field(default_factory=list)


class EditDayRequest(BaseModel):
    field: DayField
    value: Any = None
    channel_id: Optional[str] = None


class LaborRateRequest(BaseModel):
    rate: float = Field(gt=0)


class SummaryRangeRequest(BaseModel):
    start_date: date
    end_date: date


class CategorySchema(BaseModel):
    label: str
    value: float


class CategorySummaryResponse(BaseModel):
    range_key: str
    is_fallback: bool
    pending: bool
    categories: List[CategorySchema]


class SubmitResponse(BaseModel):
    status: str
    gate: Optional[str] = None
    offending_days: List[int] = Field(default_factory=list)
    focus_day: Optional[int] = None
    payload: Optional[Dict[str, Any]] = None


class GateActionResponse(BaseModel):
    accepted: bool
    previous: str
    current: str
    cancelled: bool = False
    focus_day: Optional[int] = None
    offending_days: List[int] = Field(default_factory=list)
    manual_rate_requested: bool = False
    submission: Optional[SubmitResponse] = None
