from __future__ import annotations

import asyncio
import itertools

import pytest

from domain.models import (
    AllSourcesFailed,
    ConsensusUpdated,
    InitialRender,
    ProviderId,
    SupplementaryUpdate,
    TaxRegime,
    ValidationRejected,
)
from parsers.manager import ParserManager
from services.extraction import PARTNERS, SECONDARY_ACTIVITIES, STATE_REGISTRATIONS
from services.orchestrator import EMPTY_INPUT_MESSAGE, INVALID_INPUT_MESSAGE, LookupOrchestrator
from services.snapshot import SnapshotSink

CNPJ = "11222333000181"
OTHER_CNPJ = "00000000000191"

A = ProviderId.CNPJA
R = ProviderId.RECEITAWS
B = ProviderId.BRASILAPI


def _orchestrator(parsers):
    sink = SnapshotSink()
    return LookupOrchestrator(ParserManager(parsers), sink), sink


def _describe(events):
    out = []
    for event in events:
        if isinstance(event, InitialRender):
            out.append(("render", event.provider, event.is_preliminary))
        elif isinstance(event, SupplementaryUpdate):
            out.append(("supplementary", event.field))
        else:
            out.append((type(event).__name__,))
    return out


def test_authoritative_replaces_preliminary_card(make_parsers) -> None:
    orchestrator, sink = _orchestrator(make_parsers(delays={R: 0.0, A: 0.03, B: 0.06}))

    context = asyncio.run(orchestrator.lookup("11.222.333/0001-81"))

    assert _describe(sink.events) == [
        ("render", R, True),
        ("render", A, False),
        ("supplementary", STATE_REGISTRATIONS),
        ("supplementary", SECONDARY_ACTIVITIES),
        ("supplementary", PARTNERS),
        ("ConsensusUpdated",),
    ]
    assert context.cnpj == CNPJ
    assert context.rendered_provider is A
    assert not sink.is_preliminary
    assert sink.provider is A
    # SIMPLES (ReceitaWS, CNPJá) vs NORMAL (BrasilAPI): clear majority
    assert sink.consensus.confirmed is TaxRegime.SIMPLES
    assert not sink.consensus.needs_attention
    registrations = sink.supplementary[STATE_REGISTRATIONS]
    assert [(r["state"], r["highlighted"]) for r in registrations] == [("SP", True), ("RJ", False)]


def test_only_first_secondary_renders(make_parsers) -> None:
    orchestrator, sink = _orchestrator(make_parsers(delays={R: 0.0, B: 0.03, A: 0.06}, failing=(A,)))

    context = asyncio.run(orchestrator.lookup(CNPJ))

    renders = sink.of_type(InitialRender)
    assert [(e.provider, e.is_preliminary) for e in renders] == [(R, True)]
    assert sink.supplementary[PARTNERS][1]["name"] == "MARIA SOUZA"
    assert sink.of_type(AllSourcesFailed) == []
    assert sink.is_preliminary
    assert context.is_preliminary
    assert context.authoritative_resolved
    assert context.failure_reasons == {A: "scripted failure"}


def test_secondary_after_authoritative_only_merges(make_parsers) -> None:
    orchestrator, sink = _orchestrator(make_parsers(delays={A: 0.0, R: 0.03, B: 0.06}))

    asyncio.run(orchestrator.lookup(CNPJ))

    assert _describe(sink.events) == [
        ("render", A, False),
        ("supplementary", STATE_REGISTRATIONS),
        ("supplementary", SECONDARY_ACTIVITIES),
        ("ConsensusUpdated",),
        ("supplementary", PARTNERS),
        ("ConsensusUpdated",),
    ]
    first, second = sink.of_type(ConsensusUpdated)
    assert first.consensus.confirmed is TaxRegime.SIMPLES
    assert len(second.consensus.votes) == 3


@pytest.mark.parametrize("order", list(itertools.permutations([A, R, B])))
def test_all_sources_failed_reported_once(make_parsers, order) -> None:
    delays = {provider: 0.01 * i for i, provider in enumerate(order)}
    orchestrator, sink = _orchestrator(make_parsers(delays=delays, failing=(A, R, B)))

    context = asyncio.run(orchestrator.lookup(CNPJ))

    assert len(sink.of_type(AllSourcesFailed)) == 1
    assert sink.of_type(InitialRender) == []
    assert sink.all_failed
    assert context.failures == 3
    assert context.all_failed_reported


def test_no_failure_report_when_something_rendered(make_parsers) -> None:
    orchestrator, sink = _orchestrator(make_parsers(delays={B: 0.0, A: 0.02, R: 0.04}, failing=(A, R)))

    asyncio.run(orchestrator.lookup(CNPJ))

    assert sink.of_type(AllSourcesFailed) == []
    assert sink.provider is B
    assert sink.is_preliminary


@pytest.mark.parametrize("raw,reason", [
    ("", EMPTY_INPUT_MESSAGE),
    ("abc", EMPTY_INPUT_MESSAGE),
    ("11.111.111/1111-11", INVALID_INPUT_MESSAGE),
    ("11222333000182", INVALID_INPUT_MESSAGE),
])
def test_invalid_input_launches_nothing(make_parsers, raw, reason) -> None:
    parsers = make_parsers()
    orchestrator, sink = _orchestrator(parsers)

    context = asyncio.run(orchestrator.lookup(raw))

    assert [type(e) for e in sink.events] == [ValidationRejected]
    assert sink.rejected_reason == reason
    assert context.rejected_reason == reason
    assert all(p.calls == [] for p in parsers)


def test_superseded_request_emits_nothing(make_parsers) -> None:
    parsers = make_parsers(delays={R: 0.01, A: 0.02, B: 0.03})
    orchestrator, sink = _orchestrator(parsers)

    async def scenario():
        first = orchestrator.submit(CNPJ)
        running = asyncio.create_task(orchestrator.run(first))
        await asyncio.sleep(0.015)  # first request already rendered ReceitaWS
        second = await orchestrator.lookup(OTHER_CNPJ)
        await running
        return first, second

    first, second = asyncio.run(scenario())

    assert not orchestrator.is_current(first)
    assert orchestrator.is_current(second)
    assert first.dropped_events > 0
    assert second.dropped_events == 0
    # the old request's adapters still ran to completion
    assert all(p.finished == 2 for p in parsers)
    renders = sink.of_type(InitialRender)
    assert renders[0].profile.cnpj == CNPJ
    assert all(e.profile.cnpj == OTHER_CNPJ for e in renders[1:])
    assert sink.profile.cnpj == OTHER_CNPJ
    assert sink.provider is A


def test_two_secondaries_then_authoritative_success(make_parsers) -> None:
    orchestrator, sink = _orchestrator(make_parsers(delays={R: 0.0, B: 0.03, A: 0.06}))

    asyncio.run(orchestrator.lookup(CNPJ))

    assert _describe(sink.events) == [
        ("render", R, True),
        ("supplementary", PARTNERS),
        ("ConsensusUpdated",),
        ("render", A, False),
        ("supplementary", STATE_REGISTRATIONS),
        ("supplementary", SECONDARY_ACTIVITIES),
        ("supplementary", PARTNERS),
    ]
    (update,) = sink.of_type(ConsensusUpdated)
    assert update.consensus.votes == ((R, TaxRegime.SIMPLES), (B, TaxRegime.NORMAL))
    assert update.consensus.confirmed is TaxRegime.SIMPLES
    assert update.consensus.needs_attention
    # the CNPJá render carries all three votes
    final = sink.of_type(InitialRender)[-1].consensus
    assert len(final.votes) == 3
    assert not final.needs_attention
    assert not sink.is_preliminary
    assert sink.supplementary[PARTNERS][1]["name"] == "MARIA SOUZA"


class _FailingOnceSink(SnapshotSink):
    """Raises on its first emit, like a flood-controlled chat."""

    def __init__(self) -> None:
        super().__init__()
        self.failed = False

    async def emit(self, event) -> None:
        if not self.failed:
            self.failed = True
            raise RuntimeError("Flood control exceeded")
        await super().emit(event)


def test_sink_error_does_not_end_the_request(make_parsers) -> None:
    sink = _FailingOnceSink()
    orchestrator = LookupOrchestrator(ParserManager(make_parsers(delays={R: 0.0, A: 0.03, B: 0.06})), sink)

    context = asyncio.run(orchestrator.lookup(CNPJ))

    assert sink.failed
    assert context.sink_errors == 1
    # the preliminary ReceitaWS render was lost, everything after it arrived
    assert _describe(sink.events) == [
        ("render", A, False),
        ("supplementary", STATE_REGISTRATIONS),
        ("supplementary", SECONDARY_ACTIVITIES),
        ("supplementary", PARTNERS),
        ("ConsensusUpdated",),
    ]
    assert sink.provider is A
