"""
Registry of open weekly entry sessions for the HTTP surface.

A session leaves the registry as soon as its orchestrator closes, whether
through a save, a cancelled gate or an explicit delete.
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from restaurant_ops.domain.models import WeekSelection
from restaurant_ops.domain.services.weekly_entry_orchestrator import (
    DashboardGateway,
    EntryHooks,
    WeeklyEntryOrchestrator,
)

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    pass


class EntrySessionService:
    def __init__(
        self,
        gateway_factory: Callable[[], DashboardGateway],
        hooks: Optional[EntryHooks] = None,
        **orchestrator_options: Any,
    ):
        self._gateway_factory = gateway_factory
        self._hooks = hooks or EntryHooks()
        self._options = orchestrator_options
        self._sessions: Dict[str, WeeklyEntryOrchestrator] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open_session(
        self,
        week: WeekSelection,
        existing_data: Optional[Sequence[dict]] = None,
    ) -> Tuple[str, WeeklyEntryOrchestrator]:
        session_id = uuid.uuid4().hex
        orchestrator = WeeklyEntryOrchestrator(
            self._gateway_factory(),
            hooks=self._session_hooks(session_id),
            **self._options,
        )
        try:
            await orchestrator.open(week, existing_data)
        except Exception:
            orchestrator.close()
            raise
        self._sessions[session_id] = orchestrator
        logger.info("Session %s opened for %s", session_id, week.key)
        return session_id, orchestrator

    def _session_hooks(self, session_id: str) -> EntryHooks:
        base = self._hooks

        def on_closed() -> None:
            if self._sessions.pop(session_id, None) is not None:
                logger.info("Session %s closed and released", session_id)
            if base.on_closed:
                base.on_closed()

        return EntryHooks(on_prompt=base.on_prompt, on_data_saved=base.on_data_saved, on_closed=on_closed)

    def get(self, session_id: str) -> WeeklyEntryOrchestrator:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None

    def close(self, session_id: str) -> None:
        orchestrator = self._sessions.pop(session_id, None)
        if orchestrator is None:
            raise SessionNotFound(session_id)
        orchestrator.close()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
