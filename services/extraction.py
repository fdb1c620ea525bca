"""
Per-provider extraction rules.

Every provider keeps its native record shape. This module is the only place
that knows those shapes: for each provider it maps a record to

* a tax-regime vote (or None when the record carries no regime data),
* a card-ready ``CompanyProfile``,
* the supplementary fields the provider uniquely contributes once a card is
  already on screen.

All functions are pure.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional

from domain.models import CompanyProfile, ProviderId, SourceRecord, TaxRegime

# Supplementary field names pushed through SupplementaryUpdate
SECONDARY_ACTIVITIES = "secondary_activities"
PARTNERS = "partners"
STATE_REGISTRATIONS = "state_registrations"

# CNPJá status ids -> situação cadastral
_CNPJA_STATUS = {
    1: "Ativa",
    2: "Ativa",
    3: "Suspensa",
    4: "Inapta",
    8: "Baixada",
}

_EMPTY_CODE = re.compile(r"^[0.\-]*$")


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return str(value).strip() if value not in (None, "") else ""


def _activity(code: Any, text: Any) -> Optional[Dict[str, str]]:
    code = _text(code)
    # ReceitaWS and BrasilAPI use "00.00-0-00" / 0 as "no activity"
    if not code or _EMPTY_CODE.match(code):
        return None
    return {"code": code, "text": _text(text) or "N/A"}


# ---------------------------------------------------------------------------
# Tax regime votes
# ---------------------------------------------------------------------------

def _vote_cnpja(data: Dict[str, Any]) -> Optional[TaxRegime]:
    company = data.get("company") or {}
    simples = company.get("simples")
    simei = company.get("simei")
    if (simei or {}).get("optant") is True:
        return TaxRegime.SIMEI
    if (simples or {}).get("optant") is True:
        return TaxRegime.SIMPLES
    if simples or simei:
        return TaxRegime.NORMAL
    return None


def _vote_receitaws(data: Dict[str, Any]) -> Optional[TaxRegime]:
    simples = data.get("simples")
    simei = data.get("simei")
    if (simei or {}).get("optante") is True:
        return TaxRegime.SIMEI
    if simples and (simples.get("optante") is True or simples.get("opcao_pelo_simples") == "SIM"):
        return TaxRegime.SIMPLES
    if simples or simei:
        return TaxRegime.NORMAL
    return None


def _vote_brasilapi(data: Dict[str, Any]) -> Optional[TaxRegime]:
    mei = data.get("opcao_pelo_mei")
    simples = data.get("opcao_pelo_simples")
    if mei is True:
        return TaxRegime.SIMEI
    if simples is True:
        return TaxRegime.SIMPLES
    if mei is not None or simples is not None:
        return TaxRegime.NORMAL
    return None


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def _profile_cnpja(data: Dict[str, Any]) -> CompanyProfile:
    company = data.get("company") or {}
    address = data.get("address") or {}
    status = data.get("status") or {}
    main = data.get("mainActivity") or {}
    nature = company.get("nature") or data.get("legalNature") or {}
    side = data.get("sideActivities") or company.get("sideActivities") or []

    return CompanyProfile(
        cnpj=_text(data.get("taxId")),
        name=_text(company.get("name")),
        alias=_text(data.get("alias")),
        status=_CNPJA_STATUS.get(status.get("id"), _text(status.get("text")) or "Desconhecido"),
        founded=data.get("founded"),
        size=_text((company.get("size") or {}).get("text")),
        equity=_to_float(company.get("equity")),
        legal_nature=_text(nature.get("text")),
        main_activity=_activity(main.get("id"), main.get("text")) or {},
        secondary_activities=[
            a for a in (_activity(item.get("id"), item.get("text")) for item in side) if a
        ],
        address={
            "street": _text(address.get("street")),
            "number": _text(address.get("number")),
            "details": _text(address.get("details")),
            "district": _text(address.get("district")),
            "city": _text(address.get("city")),
            "state": _text(address.get("state")),
            "zip": _text(address.get("zip")),
        },
        phones=[
            f"{_text(p.get('area'))}{_text(p.get('number'))}"
            for p in data.get("phones") or []
            if p.get("number")
        ],
        emails=[_text(e.get("address")) for e in data.get("emails") or [] if e.get("address")],
        partners=[
            {
                "name": _text((m.get("person") or {}).get("name")) or "N/A",
                "role": _text((m.get("role") or {}).get("text")) or "Sócio",
            }
            for m in company.get("members") or []
        ],
        state_registrations=[
            {
                "state": _text(reg.get("state")).upper(),
                "number": _text(reg.get("number")) or "N/A",
                "enabled": bool(reg.get("enabled")),
                "status": _text((reg.get("status") or {}).get("text")) or "Desconhecido",
            }
            for reg in data.get("registrations") or []
        ],
    )


def _profile_receitaws(data: Dict[str, Any]) -> CompanyProfile:
    main = (data.get("atividade_principal") or [{}])[0]
    phones = [p.strip() for p in _text(data.get("telefone")).split("/") if p.strip()]

    return CompanyProfile(
        cnpj=re.sub(r"\D", "", _text(data.get("cnpj"))),
        name=_text(data.get("nome")),
        alias=_text(data.get("fantasia")),
        status=_text(data.get("situacao")).title(),
        founded=data.get("abertura"),
        size=_text(data.get("porte")),
        equity=_to_float(data.get("capital_social")),
        legal_nature=_text(data.get("natureza_juridica")),
        main_activity=_activity(main.get("code"), main.get("text")) or {},
        secondary_activities=_receitaws_activities(data),
        address={
            "street": _text(data.get("logradouro")),
            "number": _text(data.get("numero")),
            "details": _text(data.get("complemento")),
            "district": _text(data.get("bairro")),
            "city": _text(data.get("municipio")),
            "state": _text(data.get("uf")),
            "zip": _text(data.get("cep")),
        },
        phones=phones,
        emails=[_text(data.get("email"))] if data.get("email") else [],
        partners=[
            {"name": _text(m.get("nome")) or "N/A", "role": _text(m.get("qual")) or "Sócio"}
            for m in data.get("qsa") or []
        ],
    )


def _profile_brasilapi(data: Dict[str, Any]) -> CompanyProfile:
    phones = [
        _text(data.get(key))
        for key in ("ddd_telefone_1", "ddd_telefone_2")
        if _text(data.get(key))
    ]

    return CompanyProfile(
        cnpj=_text(data.get("cnpj")),
        name=_text(data.get("razao_social")),
        alias=_text(data.get("nome_fantasia")),
        status=_text(data.get("descricao_situacao_cadastral")).title(),
        founded=data.get("data_inicio_atividade"),
        size=_text(data.get("porte")),
        equity=_to_float(data.get("capital_social")),
        legal_nature=_text(data.get("natureza_juridica")),
        main_activity=_activity(data.get("cnae_fiscal"), data.get("cnae_fiscal_descricao")) or {},
        secondary_activities=[
            a
            for a in (
                _activity(item.get("codigo"), item.get("descricao"))
                for item in data.get("cnaes_secundarios") or []
            )
            if a
        ],
        address={
            "street": " ".join(
                part for part in (_text(data.get("descricao_tipo_de_logradouro")), _text(data.get("logradouro"))) if part
            ),
            "number": _text(data.get("numero")),
            "details": _text(data.get("complemento")),
            "district": _text(data.get("bairro")),
            "city": _text(data.get("municipio")),
            "state": _text(data.get("uf")),
            "zip": _text(data.get("cep")),
        },
        phones=phones,
        emails=[_text(data.get("email"))] if data.get("email") else [],
        partners=_brasilapi_partners(data),
    )


# ---------------------------------------------------------------------------
# Supplementary fields
# ---------------------------------------------------------------------------

def _receitaws_activities(data: Dict[str, Any]) -> List[Dict[str, str]]:
    return [
        a
        for a in (_activity(item.get("code"), item.get("text")) for item in data.get("atividades_secundarias") or [])
        if a
    ]


def _brasilapi_partners(data: Dict[str, Any]) -> List[Dict[str, str]]:
    return [
        {
            "name": _text(m.get("nome_socio")) or "N/A",
            "role": _text(m.get("qualificacao_socio")) or "Sócio",
        }
        for m in data.get("qsa") or []
    ]


def _supplementary_receitaws(data: Dict[str, Any]) -> Dict[str, Any]:
    return {SECONDARY_ACTIVITIES: _receitaws_activities(data)}


def _supplementary_brasilapi(data: Dict[str, Any]) -> Dict[str, Any]:
    return {PARTNERS: _brasilapi_partners(data)}


def _supplementary_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {}


_VOTE_RULES: Dict[ProviderId, Callable[[Dict[str, Any]], Optional[TaxRegime]]] = {
    ProviderId.CNPJA: _vote_cnpja,
    ProviderId.RECEITAWS: _vote_receitaws,
    ProviderId.BRASILAPI: _vote_brasilapi,
}

_PROFILE_RULES: Dict[ProviderId, Callable[[Dict[str, Any]], CompanyProfile]] = {
    ProviderId.CNPJA: _profile_cnpja,
    ProviderId.RECEITAWS: _profile_receitaws,
    ProviderId.BRASILAPI: _profile_brasilapi,
}

_SUPPLEMENTARY_RULES: Dict[ProviderId, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    ProviderId.CNPJA: _supplementary_none,
    ProviderId.RECEITAWS: _supplementary_receitaws,
    ProviderId.BRASILAPI: _supplementary_brasilapi,
}


def extract_vote(record: SourceRecord) -> Optional[TaxRegime]:
    """Tax regime reported by ``record``; None when it has no regime data."""
    return _VOTE_RULES[record.provider](record.data)


def extract_profile(record: SourceRecord) -> CompanyProfile:
    return _PROFILE_RULES[record.provider](record.data)


def extract_supplementary(record: SourceRecord) -> Dict[str, Any]:
    """Fields this provider contributes on top of an already rendered card."""
    return _SUPPLEMENTARY_RULES[record.provider](record.data)


def highlight_registrations(registrations: List[Dict[str, Any]], main_state: str) -> List[Dict[str, Any]]:
    """Mark the state registrations (IE) issued in the company's own UF."""
    main_state = (main_state or "").upper()
    return [
        {**reg, "highlighted": bool(main_state) and reg.get("state", "").upper() == main_state}
        for reg in registrations
    ]
