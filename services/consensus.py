"""
Tax regime consensus across providers.

Rule:
  confirmed       = the most specific regime reported by any provider
                    (SIMEI > SIMPLES > NORMAL > OUTROS), regardless of how many
                    providers reported something less specific;
  needs_attention = votes for ``confirmed`` do not strictly outnumber the
                    dissenting votes (1 vs 1 ties, 1 vs 2 minorities).

With no votes the regime is OUTROS and nothing needs attention. Both values
are recomputed from the full vote list after every vote, so the displayed
regime may change while providers are still answering.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from domain.models import ConsensusDisplay, ProviderId, TaxRegime

logger = logging.getLogger(__name__)

Vote = Tuple[ProviderId, TaxRegime]


def resolve(votes: Sequence[Vote]) -> Tuple[TaxRegime, bool]:
    """Return ``(confirmed, needs_attention)`` for a vote sequence."""
    if not votes:
        return TaxRegime.OUTROS, False

    confirmed = min((regime for _, regime in votes), key=lambda regime: regime.priority)
    agreeing = sum(1 for _, regime in votes if regime is confirmed)
    dissenting = len(votes) - agreeing
    return confirmed, agreeing <= dissenting


class ConsensusResolver:
    """Accumulates per-provider votes in arrival order."""

    def __init__(self):
        self._votes: List[Vote] = []
        self._confirmed = TaxRegime.OUTROS
        self._needs_attention = False

    @property
    def votes(self) -> List[Vote]:
        return list(self._votes)

    @property
    def confirmed(self) -> TaxRegime:
        return self._confirmed

    @property
    def needs_attention(self) -> bool:
        return self._needs_attention

    def add_vote(self, provider: ProviderId, regime: Optional[TaxRegime]) -> bool:
        """Record a vote and recompute. Returns False when there was nothing to record."""
        if regime is None:
            return False
        self._votes.append((provider, regime))
        self._confirmed, self._needs_attention = resolve(self._votes)
        logger.debug(
            "Consensus after %s=%s: %s (attention=%s, votes=%d)",
            provider.value, regime.value, self._confirmed.value, self._needs_attention, len(self._votes),
        )
        return True

    def snapshot(self) -> ConsensusDisplay:
        return ConsensusDisplay(
            confirmed=self._confirmed,
            needs_attention=self._needs_attention,
            votes=tuple(self._votes),
        )
