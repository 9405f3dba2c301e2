"""
Domain Models - Enums
Workflow vocabulary shared by the store, gates and orchestrator
"""

from enum import Enum


class Gate(str, Enum):
    """Confirmation gate the orchestrator is currently parked on"""
    WEEK_CONFIRMATION = "WEEK_CONFIRMATION"
    LABOR_RATE_CONFIRMATION = "LABOR_RATE_CONFIRMATION"
    BUDGET_VALIDATION = "BUDGET_VALIDATION"
    READY = "READY"


class GateAction(str, Enum):
    """User exits offered by the gates"""
    # WEEK_CONFIRMATION
    PROCEED = "proceed"
    CANCEL = "cancel"
    # LABOR_RATE_CONFIRMATION
    USE_PREVIOUS_RATE = "usePreviousRate"
    USE_CURRENT_RATE = "useCurrentRate"
    CONTINUE_WITH_CURRENT = "continueWithCurrent"
    # BUDGET_VALIDATION
    ADD_BUDGETS = "addBudgets"
    SAVE_ANYWAY = "saveAnyway"


class LaborRateSource(str, Enum):
    """Where the average hourly rate came from"""
    UNSET = "UNSET"
    FROM_PRIOR_WEEK = "FROM_PRIOR_WEEK"
    FROM_CURRENT_ENTRY = "FROM_CURRENT_ENTRY"
    USER_OVERRIDE = "USER_OVERRIDE"


class DayField(str, Enum):
    """Editable DayRecord fields"""
    IS_OPEN = "is_open"
    BUDGETED_SALES = "budgeted_sales"
    ACTUAL_SALES = "actual_sales"
    TICKET_COUNT = "ticket_count"


class SubmitStatus(str, Enum):
    """Result of a submit intent"""
    SAVED = "SAVED"
    BLOCKED_BY_GATE = "BLOCKED_BY_GATE"
    BUDGETS_MISSING = "BUDGETS_MISSING"
    IN_FLIGHT = "IN_FLIGHT"
    CLOSED = "CLOSED"


class PromptKind(str, Enum):
    """User-facing prompts emitted by the orchestrator"""
    CONFIRM_WEEK = "CONFIRM_WEEK"
    CONFIRM_LABOR_RATE = "CONFIRM_LABOR_RATE"
    MANUAL_LABOR_RATE = "MANUAL_LABOR_RATE"
    MISSING_BUDGETS = "MISSING_BUDGETS"
    BUDGET_ADDED = "BUDGET_ADDED"
