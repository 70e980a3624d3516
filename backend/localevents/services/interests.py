from __future__ import annotations

from typing import Dict

from localevents.domain.models import InterestStatus


class InterestBook:
    """Per-viewer interest state. Toggling a status sets it, toggling it again clears it."""

    def __init__(self):
        self._statuses: Dict[int, InterestStatus] = {}

    @property
    def state(self) -> Dict[int, InterestStatus]:
        return dict(self._statuses)

    def status(self, event_id: int) -> InterestStatus:
        return self._statuses.get(event_id, InterestStatus.NONE)

    def toggle_interested(self, event_id: int) -> InterestStatus:
        return self._toggle(event_id, InterestStatus.INTERESTED)

    def toggle_attended(self, event_id: int) -> InterestStatus:
        return self._toggle(event_id, InterestStatus.ATTENDED)

    def _toggle(self, event_id: int, status: InterestStatus) -> InterestStatus:
        if self._statuses.get(event_id) == status:
            del self._statuses[event_id]
            return InterestStatus.NONE
        self._statuses[event_id] = status
        return status
