"""Pydantic schemas for FastAPI request / response models."""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Company card
# ---------------------------------------------------------------------------

class Activity(BaseModel):
    code: str
    text: str = "N/A"


class Partner(BaseModel):
    name: str
    role: str = "Sócio"


class StateRegistration(BaseModel):
    state: str
    number: str = "N/A"
    enabled: bool = False
    status: str = "Desconhecido"
    highlighted: bool = False


class Address(BaseModel):
    street: str = ""
    number: str = ""
    details: str = ""
    district: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


class CompanyOut(BaseModel):
    cnpj: str
    name: str = ""
    alias: str = ""
    status: str = ""
    founded: Optional[str] = None
    size: str = ""
    equity: Optional[float] = None
    legal_nature: str = ""
    main_activity: Optional[Activity] = None
    secondary_activities: list[Activity] = []
    address: Address = Field(default_factory=Address)
    phones: list[str] = []
    emails: list[str] = []
    partners: list[Partner] = []
    state_registrations: list[StateRegistration] = []

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# Consensus
# ---------------------------------------------------------------------------

class Vote(BaseModel):
    provider: str
    regime: str


class ConsensusOut(BaseModel):
    regime: str  # TaxRegime value
    text: str  # display label, e.g. "S I M E I"
    needs_attention: bool = False
    votes: list[Vote] = []


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

class LookupResponse(BaseModel):
    cnpj: str
    provider: str  # provider whose record backs the card
    is_preliminary: bool = False
    company: CompanyOut
    consensus: ConsensusOut
    failures: dict[str, str] = {}  # provider -> last failure reason


class SourceOutcome(BaseModel):
    provider: str
    ok: bool
    attempts: int = 1
    reason: Optional[str] = None
    data: Optional[dict] = None  # provider-native record


class SourcesResponse(BaseModel):
    cnpj: str
    sources: list[SourceOutcome]
