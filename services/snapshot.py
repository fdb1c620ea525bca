"""
Render sink that folds orchestrator events into one final snapshot.

Used by the HTTP backend, which answers once every source has settled, and
by tests that assert on the emitted event sequence.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from domain.models import (
    AllSourcesFailed,
    CompanyProfile,
    ConsensusDisplay,
    ConsensusUpdated,
    InitialRender,
    ProviderId,
    RenderEvent,
    SupplementaryUpdate,
    ValidationRejected,
)
from domain.render_sink import RenderSink


class SnapshotSink(RenderSink):
    """Keeps every event plus the view they add up to."""

    def __init__(self):
        self.events: List[RenderEvent] = []
        self.provider: Optional[ProviderId] = None
        self.profile: Optional[CompanyProfile] = None
        self.consensus: Optional[ConsensusDisplay] = None
        self.is_preliminary = False
        self.supplementary: Dict[str, Any] = {}
        self.rejected_reason: Optional[str] = None
        self.all_failed = False

    async def emit(self, event: RenderEvent) -> None:
        self.events.append(event)

        if isinstance(event, InitialRender):
            # a full render replaces the card, merged fields included
            self.provider = event.provider
            self.profile = event.profile
            self.consensus = event.consensus
            self.is_preliminary = event.is_preliminary
            self.supplementary = {}
        elif isinstance(event, SupplementaryUpdate):
            self.supplementary[event.field] = event.data
        elif isinstance(event, ConsensusUpdated):
            self.consensus = event.consensus
        elif isinstance(event, ValidationRejected):
            self.rejected_reason = event.reason
        elif isinstance(event, AllSourcesFailed):
            self.all_failed = True

    def of_type(self, event_type: Type) -> List[Any]:
        return [event for event in self.events if isinstance(event, event_type)]
