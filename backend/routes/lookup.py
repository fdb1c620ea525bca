"""Lookup endpoints -- reconciled company card and raw per-source outcomes."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from backend.schemas import ConsensusOut, LookupResponse, SourceOutcome, SourcesResponse, Vote
from domain.models import ConsensusDisplay, Success
from parsers.manager import ParserManager
from services.orchestrator import INVALID_INPUT_MESSAGE, LookupOrchestrator
from services.snapshot import SnapshotSink
from utils.cnpj import clean_cnpj, validate_cnpj

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lookup", tags=["lookup"])

_manager: Optional[ParserManager] = None


def get_manager() -> ParserManager:
    """Shared adapter manager, created on first use."""
    global _manager
    if _manager is None:
        _manager = ParserManager()
    return _manager


async def close_manager():
    global _manager
    if _manager is not None:
        await _manager.close()
        _manager = None


def _consensus_out(consensus: ConsensusDisplay) -> ConsensusOut:
    return ConsensusOut(
        regime=consensus.confirmed.value,
        text=consensus.text,
        needs_attention=consensus.needs_attention,
        votes=[Vote(provider=p.value, regime=r.value) for p, r in consensus.votes],
    )


def _company_out(sink: SnapshotSink) -> dict:
    """Profile of the rendered card with the merged supplementary fields applied."""
    company = asdict(sink.profile)
    company.update(sink.supplementary)
    company["main_activity"] = company["main_activity"] or None
    return company


# must stay above "/{cnpj:path}", which would also match ".../sources"
@router.get("/{cnpj:path}/sources", response_model=SourcesResponse)
async def lookup_sources(cnpj: str, manager: ParserManager = Depends(get_manager)):
    """Every source's own answer, without reconciliation."""
    digits = clean_cnpj(cnpj)
    if not validate_cnpj(digits):
        raise HTTPException(status_code=422, detail=INVALID_INPUT_MESSAGE)

    outcomes = await manager.fetch_all(digits)
    sources = []
    for provider in manager.providers:
        outcome = outcomes[provider]
        if isinstance(outcome, Success):
            sources.append(SourceOutcome(
                provider=provider.value, ok=True, attempts=outcome.attempts, data=outcome.record.data,
            ))
        else:
            sources.append(SourceOutcome(
                provider=provider.value, ok=False, attempts=outcome.attempts, reason=outcome.reason,
            ))
    return SourcesResponse(cnpj=digits, sources=sources)


@router.get("/{cnpj:path}", response_model=LookupResponse)
async def lookup(cnpj: str, manager: ParserManager = Depends(get_manager)):
    sink = SnapshotSink()
    context = await LookupOrchestrator(manager, sink).lookup(cnpj)

    if sink.rejected_reason:
        raise HTTPException(status_code=422, detail=sink.rejected_reason)
    if sink.all_failed or sink.profile is None:
        raise HTTPException(
            status_code=502,
            detail={
                "message": "All CNPJ sources failed",
                "failures": {p.value: reason for p, reason in context.failure_reasons.items()},
            },
        )

    return LookupResponse(
        cnpj=context.cnpj,
        provider=sink.provider.value,
        is_preliminary=sink.is_preliminary,
        company=_company_out(sink),
        consensus=_consensus_out(sink.consensus),
        failures={p.value: reason for p, reason in context.failure_reasons.items()},
    )

