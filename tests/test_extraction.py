from __future__ import annotations

from domain.models import ProviderId, SourceRecord, TaxRegime
from services.extraction import (
    PARTNERS,
    SECONDARY_ACTIVITIES,
    extract_profile,
    extract_supplementary,
    extract_vote,
    highlight_registrations,
)


def _record(provider: ProviderId, data: dict) -> SourceRecord:
    return SourceRecord(provider, data)


def test_votes_per_provider(payloads) -> None:
    assert extract_vote(_record(ProviderId.CNPJA, payloads[ProviderId.CNPJA])) is TaxRegime.SIMPLES
    assert extract_vote(_record(ProviderId.RECEITAWS, payloads[ProviderId.RECEITAWS])) is TaxRegime.SIMPLES
    assert extract_vote(_record(ProviderId.BRASILAPI, payloads[ProviderId.BRASILAPI])) is TaxRegime.NORMAL


def test_simei_beats_simples_within_one_record(payloads) -> None:
    data = payloads[ProviderId.CNPJA]
    data["company"]["simei"] = {"optant": True}

    assert extract_vote(_record(ProviderId.CNPJA, data)) is TaxRegime.SIMEI

    data = payloads[ProviderId.BRASILAPI]
    data["opcao_pelo_mei"] = True
    assert extract_vote(_record(ProviderId.BRASILAPI, data)) is TaxRegime.SIMEI


def test_record_without_regime_data_does_not_vote(payloads) -> None:
    data = payloads[ProviderId.RECEITAWS]
    del data["simples"]
    del data["simei"]

    assert extract_vote(_record(ProviderId.RECEITAWS, data)) is None

    data = payloads[ProviderId.BRASILAPI]
    data["opcao_pelo_simples"] = None
    data["opcao_pelo_mei"] = None
    assert extract_vote(_record(ProviderId.BRASILAPI, data)) is None


def test_cnpja_profile(payloads) -> None:
    profile = extract_profile(_record(ProviderId.CNPJA, payloads[ProviderId.CNPJA]))

    assert profile.cnpj == "11222333000181"
    assert profile.name == "EXEMPLO COMERCIO DE FLORES LTDA"
    assert profile.status == "Ativa"
    assert profile.size == "Microempresa"
    assert profile.equity == 50000.0
    assert profile.main_activity == {"code": "4789001", "text": "Comércio varejista de flores"}
    assert profile.phones == ["11912345678"]
    assert profile.partners == [{"name": "JOAO DA SILVA", "role": "Sócio-Administrador"}]
    assert profile.state == "SP"
    assert [r["state"] for r in profile.state_registrations] == ["SP", "RJ"]


def test_receitaws_profile_drops_empty_activity_codes(payloads) -> None:
    profile = extract_profile(_record(ProviderId.RECEITAWS, payloads[ProviderId.RECEITAWS]))

    assert profile.cnpj == "11222333000181"
    assert profile.status == "Ativa"
    assert profile.phones == ["(11) 91234-5678", "(11) 3333-4444"]
    assert profile.secondary_activities == [
        {"code": "47.29-6-99", "text": "Comércio varejista de produtos alimentícios"},
    ]


def test_brasilapi_profile(payloads) -> None:
    profile = extract_profile(_record(ProviderId.BRASILAPI, payloads[ProviderId.BRASILAPI]))

    assert profile.address["street"] == "RUA DAS FLORES"
    assert profile.main_activity["code"] == "4789001"
    assert profile.secondary_activities == []
    assert profile.emails == []
    assert len(profile.partners) == 2


def test_supplementary_fields_are_provider_specific(payloads) -> None:
    receitaws = extract_supplementary(_record(ProviderId.RECEITAWS, payloads[ProviderId.RECEITAWS]))
    brasilapi = extract_supplementary(_record(ProviderId.BRASILAPI, payloads[ProviderId.BRASILAPI]))

    assert list(receitaws) == [SECONDARY_ACTIVITIES]
    assert list(brasilapi) == [PARTNERS]
    assert brasilapi[PARTNERS][1] == {"name": "MARIA SOUZA", "role": "Sócio"}
    assert extract_supplementary(_record(ProviderId.CNPJA, payloads[ProviderId.CNPJA])) == {}


def test_highlight_registrations_marks_home_state() -> None:
    registrations = [{"state": "SP", "number": "1"}, {"state": "RJ", "number": "2"}]

    marked = highlight_registrations(registrations, "sp")

    assert [r["highlighted"] for r in marked] == [True, False]
    assert "highlighted" not in registrations[0]
    assert not any(r["highlighted"] for r in highlight_registrations(registrations, ""))
