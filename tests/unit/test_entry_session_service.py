from datetime import date

import pytest

from restaurant_ops.domain.models import GateAction, SubmitStatus
from restaurant_ops.domain.services.weekly_entry_orchestrator import EntryHooks
from restaurant_ops.services.entry_session_service import EntrySessionService, SessionNotFound

INSIDE_WEEK = date(2026, 10, 14)


def _service(gateway, hooks=None, today=INSIDE_WEEK):
    return EntrySessionService(
        lambda: gateway,
        hooks=hooks,
        today=lambda: today,
        debounce_seconds=0.01,
        labor_prompt_delay=0.01,
        budget_notice_delay=0.01,
    )


async def test_saved_session_is_released(gateway, week, existing_days):
    closed = []
    service = _service(gateway, hooks=EntryHooks(on_closed=lambda: closed.append(True)))
    session_id, orchestrator = await service.open_session(week, existing_days([100, 0, 100, 0, 100, 0, 100]))
    assert len(service) == 1

    await orchestrator.submit()
    result = await orchestrator.resolve(GateAction.SAVE_ANYWAY)

    assert result.submission.status == SubmitStatus.SAVED
    assert len(service) == 0
    assert closed == [True]
    with pytest.raises(SessionNotFound):
        service.get(session_id)


async def test_cancelled_session_is_released(gateway, week):
    service = _service(gateway, today=date(2026, 10, 19))
    session_id, orchestrator = await service.open_session(week)

    result = await orchestrator.resolve(GateAction.CANCEL)

    assert result.transition.cancelled
    assert len(service) == 0
    with pytest.raises(SessionNotFound):
        service.close(session_id)


async def test_close_all_releases_every_session(gateway, week):
    service = _service(gateway)
    await service.open_session(week)
    await service.open_session(week)

    service.close_all()

    assert len(service) == 0
