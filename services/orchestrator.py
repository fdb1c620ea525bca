"""
Lookup orchestrator -- reconciles the three CNPJ sources for one request.

Flow per request:
  1. Validate the CNPJ (no network activity on invalid input).
  2. Start every source adapter at once (ParserManager.stream).
  3. Consume outcomes in completion order, one at a time:
       - feed the tax regime vote to the consensus resolver;
       - CNPJá (authoritative) always renders the full card, replacing
         whatever was on screen, then re-applies the supplementary data of
         the secondary sources already received;
       - the first secondary source to answer before anything is on screen
         renders a preliminary card;
       - later secondary answers only push their own supplementary fields
         and the new consensus.
  4. When every source failed and nothing was rendered, report it once.

A new submission on the same orchestrator supersedes the running request:
the old request keeps draining its adapters (they are never cancelled) but
none of its events reach the sink anymore.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from domain.models import (
    AllSourcesFailed,
    ConsensusUpdated,
    Failure,
    InitialRender,
    ProviderId,
    RenderEvent,
    SourceRecord,
    Success,
    SupplementaryUpdate,
    ValidationRejected,
)
from domain.render_sink import RenderSink
from parsers.manager import ParserManager
from utils.cnpj import clean_cnpj, validate_cnpj
from services.consensus import ConsensusResolver
from services.extraction import (
    STATE_REGISTRATIONS,
    extract_profile,
    extract_supplementary,
    extract_vote,
    highlight_registrations,
)

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Por favor, digite um CNPJ."
INVALID_INPUT_MESSAGE = "CNPJ inválido! Verifique os números digitados."


@dataclass
class RequestContext:
    """State of one user-initiated lookup."""

    request_id: int
    raw_input: str
    cnpj: str = ""
    resolved: Set[ProviderId] = field(default_factory=set)
    authoritative_resolved: bool = False
    rendered: bool = False
    rendered_provider: Optional[ProviderId] = None
    failures: int = 0
    failure_reasons: Dict[ProviderId, str] = field(default_factory=dict)
    all_failed_reported: bool = False
    rejected_reason: Optional[str] = None
    secondary_records: Dict[ProviderId, SourceRecord] = field(default_factory=dict)
    consensus: ConsensusResolver = field(default_factory=ConsensusResolver)
    dropped_events: int = 0
    sink_errors: int = 0

    @property
    def is_preliminary(self) -> bool:
        return self.rendered and not (self.rendered_provider and self.rendered_provider.is_authoritative)


class LookupOrchestrator:
    """Owns the lifecycle of lookups sent to one render sink."""

    def __init__(self, manager: ParserManager, sink: RenderSink):
        self._manager = manager
        self._sink = sink
        self._ids = itertools.count(1)
        self._current_id = 0

    def is_current(self, context: RequestContext) -> bool:
        return context.request_id == self._current_id

    def submit(self, raw_input: str) -> RequestContext:
        """Open a new request; any earlier one stops reaching the sink."""
        context = RequestContext(request_id=next(self._ids), raw_input=raw_input or "")
        self._current_id = context.request_id
        return context

    async def lookup(self, raw_input: str) -> RequestContext:
        """Submit and run a request to completion."""
        return await self.run(self.submit(raw_input))

    async def run(self, context: RequestContext) -> RequestContext:
        cnpj = clean_cnpj(context.raw_input)
        if not cnpj:
            await self._reject(context, EMPTY_INPUT_MESSAGE)
            return context
        if not validate_cnpj(cnpj):
            await self._reject(context, INVALID_INPUT_MESSAGE)
            return context

        context.cnpj = cnpj
        logger.info(f"🔍 Lookup #{context.request_id}: querying {len(self._manager.providers)} sources for CNPJ {cnpj}")

        async for outcome in self._manager.stream(cnpj):
            context.resolved.add(outcome.provider)
            if outcome.provider.is_authoritative:
                context.authoritative_resolved = True
            if isinstance(outcome, Success):
                await self._on_success(context, outcome.record)
            else:
                await self._on_failure(context, outcome)

        logger.info(
            f"🏁 Lookup #{context.request_id} for CNPJ {cnpj}: "
            f"rendered from {context.rendered_provider.value if context.rendered_provider else 'nothing'}, "
            f"{context.failures} failure(s), regime {context.consensus.confirmed.value}"
        )
        return context

    # ------------------------------------------------------------------
    # Decision rules
    # ------------------------------------------------------------------

    async def _on_success(self, context: RequestContext, record: SourceRecord):
        provider = record.provider
        vote_changed = context.consensus.add_vote(provider, extract_vote(record))

        if provider.is_authoritative:
            profile = await self._render(context, record, is_preliminary=False)
            await self._emit(
                context,
                SupplementaryUpdate(
                    STATE_REGISTRATIONS,
                    highlight_registrations(profile.state_registrations, profile.state),
                ),
            )
            for secondary in context.secondary_records.values():
                await self._merge(context, secondary)
            return

        context.secondary_records[provider] = record
        if not context.rendered:
            await self._render(context, record, is_preliminary=True)
            return

        await self._merge(context, record)
        if vote_changed:
            await self._emit(context, ConsensusUpdated(context.consensus.snapshot()))

    async def _on_failure(self, context: RequestContext, outcome: Failure):
        context.failures += 1
        context.failure_reasons[outcome.provider] = outcome.reason
        logger.info(
            f"Lookup #{context.request_id}: {outcome.provider.title} failed after "
            f"{outcome.attempts} attempt(s) ({outcome.reason})"
        )
        total = len(self._manager.providers)
        if context.failures >= total and not context.rendered and not context.all_failed_reported:
            context.all_failed_reported = True
            logger.warning(f"❌ Lookup #{context.request_id}: all {total} sources failed for CNPJ {context.cnpj}")
            await self._emit(context, AllSourcesFailed())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _render(self, context: RequestContext, record: SourceRecord, is_preliminary: bool):
        profile = extract_profile(record)
        replacing = context.rendered_provider
        context.rendered = True
        context.rendered_provider = record.provider
        if replacing:
            logger.info(f"Lookup #{context.request_id}: {record.provider.title} replaces {replacing.title} card")
        else:
            logger.info(
                f"Lookup #{context.request_id}: first card from {record.provider.title}"
                f"{' (preliminary)' if is_preliminary else ''}"
            )
        await self._emit(
            context,
            InitialRender(
                provider=record.provider,
                record=record,
                profile=profile,
                consensus=context.consensus.snapshot(),
                is_preliminary=is_preliminary,
            ),
        )
        return profile

    async def _merge(self, context: RequestContext, record: SourceRecord):
        for field_name, data in extract_supplementary(record).items():
            await self._emit(context, SupplementaryUpdate(field_name, data))

    async def _reject(self, context: RequestContext, reason: str):
        context.rejected_reason = reason
        logger.info(f"Lookup #{context.request_id} rejected: {reason}")
        await self._emit(context, ValidationRejected(reason))

    async def _emit(self, context: RequestContext, event: RenderEvent):
        if not self.is_current(context):
            context.dropped_events += 1
            logger.debug(f"Lookup #{context.request_id} superseded, dropping {type(event).__name__}")
            return
        try:
            await self._sink.emit(event)
        except Exception as e:
            # the request keeps consuming outcomes after a failed sink call
            context.sink_errors += 1
            logger.warning(f"⚠️ Lookup #{context.request_id}: sink failed on {type(event).__name__}: {e}")
