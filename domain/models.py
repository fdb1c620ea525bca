"""
Domain types shared by the source adapters, the consensus resolver and the
query orchestrator.

Provider records are kept in their native JSON shape (``SourceRecord.data``);
anything that needs a field reads it through the per-provider rules in
``services.extraction``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ProviderId(str, Enum):
    CNPJA = "cnpja"
    RECEITAWS = "receitaws"
    BRASILAPI = "brasilapi"

    @property
    def is_authoritative(self) -> bool:
        return self is ProviderId.CNPJA

    @property
    def title(self) -> str:
        return _PROVIDER_TITLES[self]


_PROVIDER_TITLES = {
    ProviderId.CNPJA: "CNPJá",
    ProviderId.RECEITAWS: "ReceitaWS",
    ProviderId.BRASILAPI: "BrasilAPI",
}


class TaxRegime(str, Enum):
    """Tax regime labels, declared from most to least specific."""

    SIMEI = "simei"
    SIMPLES = "simples"
    NORMAL = "normal"
    OUTROS = "outros"

    @property
    def priority(self) -> int:
        # lower value wins
        return _REGIME_ORDER.index(self)

    @property
    def display(self) -> str:
        return _REGIME_DISPLAY[self]


_REGIME_ORDER = [TaxRegime.SIMEI, TaxRegime.SIMPLES, TaxRegime.NORMAL, TaxRegime.OUTROS]

_REGIME_DISPLAY = {
    TaxRegime.SIMEI: "S I M E I",
    TaxRegime.SIMPLES: "Simples",
    TaxRegime.NORMAL: "Trib: Normal",
    TaxRegime.OUTROS: "Trib: Outros",
}


@dataclass(frozen=True)
class SourceRecord:
    provider: ProviderId
    data: Dict[str, Any]


@dataclass(frozen=True)
class Success:
    record: SourceRecord
    attempts: int = 1

    @property
    def provider(self) -> ProviderId:
        return self.record.provider


@dataclass(frozen=True)
class Failure:
    provider: ProviderId
    reason: str
    attempts: int = 1


FetchOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class ConsensusDisplay:
    confirmed: TaxRegime
    needs_attention: bool
    votes: Tuple[Tuple[ProviderId, TaxRegime], ...] = ()

    @property
    def text(self) -> str:
        return self.confirmed.display


@dataclass
class CompanyProfile:
    """Card-ready view of one provider record."""

    cnpj: str = ""
    name: str = ""
    alias: str = ""
    status: str = ""
    founded: Optional[str] = None
    size: str = ""
    equity: Optional[float] = None
    legal_nature: str = ""
    main_activity: Dict[str, str] = field(default_factory=dict)
    secondary_activities: List[Dict[str, str]] = field(default_factory=list)
    address: Dict[str, str] = field(default_factory=dict)
    phones: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    partners: List[Dict[str, str]] = field(default_factory=list)
    state_registrations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def state(self) -> str:
        return (self.address.get("state") or "").upper()


# ---------------------------------------------------------------------------
# Render sink events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InitialRender:
    provider: ProviderId
    record: SourceRecord
    profile: CompanyProfile
    consensus: ConsensusDisplay
    is_preliminary: bool


@dataclass(frozen=True)
class SupplementaryUpdate:
    field: str
    data: Any


@dataclass(frozen=True)
class ConsensusUpdated:
    consensus: ConsensusDisplay


@dataclass(frozen=True)
class ValidationRejected:
    reason: str


@dataclass(frozen=True)
class AllSourcesFailed:
    pass


RenderEvent = Union[
    InitialRender,
    SupplementaryUpdate,
    ConsensusUpdated,
    ValidationRejected,
    AllSourcesFailed,
]
