from __future__ import annotations

import asyncio
import copy
from pathlib import Path
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from domain.models import Failure, ProviderId, SourceRecord, Success  # noqa: E402

VALID_CNPJ = "11222333000181"
OTHER_VALID_CNPJ = "00000000000191"

CNPJA_PAYLOAD: Dict[str, Any] = {
    "taxId": VALID_CNPJ,
    "alias": "Flores & Cia",
    "founded": "2001-05-10",
    "status": {"id": 2, "text": "Ativa"},
    "company": {
        "name": "EXEMPLO COMERCIO DE FLORES LTDA",
        "equity": 50000,
        "nature": {"id": 2062, "text": "Sociedade Empresária Limitada"},
        "size": {"id": 1, "acronym": "ME", "text": "Microempresa"},
        "simples": {"optant": True, "since": "2007-07-01"},
        "simei": {"optant": False, "since": None},
        "members": [
            {"person": {"name": "JOAO DA SILVA"}, "role": {"id": 49, "text": "Sócio-Administrador"}},
        ],
    },
    "address": {
        "street": "Rua das Flores",
        "number": "100",
        "details": "Sala 2",
        "district": "Centro",
        "city": "São Paulo",
        "state": "SP",
        "zip": "01001000",
    },
    "phones": [{"area": "11", "number": "912345678"}],
    "emails": [{"address": "CONTATO@EXEMPLO.COM.BR"}],
    "mainActivity": {"id": 4789001, "text": "Comércio varejista de flores"},
    "sideActivities": [{"id": 4729699, "text": "Comércio varejista de produtos alimentícios"}],
    "registrations": [
        {"number": "111222333444", "state": "SP", "enabled": True, "status": {"id": 1, "text": "Sem restrição"}},
        {"number": "0012345", "state": "RJ", "enabled": False, "status": {"id": 2, "text": "Bloqueado"}},
    ],
}

RECEITAWS_PAYLOAD: Dict[str, Any] = {
    "status": "OK",
    "cnpj": "11.222.333/0001-81",
    "nome": "EXEMPLO COMERCIO DE FLORES LTDA",
    "fantasia": "FLORES & CIA",
    "situacao": "ATIVA",
    "abertura": "10/05/2001",
    "porte": "MICRO EMPRESA",
    "capital_social": "50000.00",
    "natureza_juridica": "206-2 - Sociedade Empresária Limitada",
    "atividade_principal": [{"code": "47.89-0-01", "text": "Comércio varejista de flores"}],
    "atividades_secundarias": [
        {"code": "47.29-6-99", "text": "Comércio varejista de produtos alimentícios"},
        {"code": "00.00-0-00", "text": "Não informada"},
    ],
    "logradouro": "RUA DAS FLORES",
    "numero": "100",
    "complemento": "SALA 2",
    "bairro": "CENTRO",
    "municipio": "SAO PAULO",
    "uf": "SP",
    "cep": "01.001-000",
    "telefone": "(11) 91234-5678 / (11) 3333-4444",
    "email": "contato@exemplo.com.br",
    "qsa": [{"nome": "JOAO DA SILVA", "qual": "49-Sócio-Administrador"}],
    "simples": {"optante": True},
    "simei": {"optante": False},
}

BRASILAPI_PAYLOAD: Dict[str, Any] = {
    "cnpj": VALID_CNPJ,
    "razao_social": "EXEMPLO COMERCIO DE FLORES LTDA",
    "nome_fantasia": "FLORES & CIA",
    "descricao_situacao_cadastral": "ATIVA",
    "data_inicio_atividade": "2001-05-10",
    "porte": "MICRO EMPRESA",
    "capital_social": 50000,
    "natureza_juridica": "Sociedade Empresária Limitada",
    "cnae_fiscal": 4789001,
    "cnae_fiscal_descricao": "Comércio varejista de flores",
    "cnaes_secundarios": [{"codigo": 0, "descricao": ""}],
    "descricao_tipo_de_logradouro": "RUA",
    "logradouro": "DAS FLORES",
    "numero": "100",
    "complemento": "SALA 2",
    "bairro": "CENTRO",
    "municipio": "SAO PAULO",
    "uf": "SP",
    "cep": "01001000",
    "ddd_telefone_1": "11912345678",
    "ddd_telefone_2": "",
    "email": None,
    "qsa": [
        {"nome_socio": "JOAO DA SILVA", "qualificacao_socio": "Sócio-Administrador"},
        {"nome_socio": "MARIA SOUZA", "qualificacao_socio": "Sócio"},
    ],
    "opcao_pelo_simples": False,
    "opcao_pelo_mei": False,
}

PAYLOADS = {
    ProviderId.CNPJA: CNPJA_PAYLOAD,
    ProviderId.RECEITAWS: RECEITAWS_PAYLOAD,
    ProviderId.BRASILAPI: BRASILAPI_PAYLOAD,
}


class ScriptedParser:
    """Stand-in adapter: answers after ``delay`` seconds with a fixed outcome."""

    def __init__(self, provider: ProviderId, *, delay: float = 0.0, fail: bool = False,
                 data: Optional[Dict[str, Any]] = None) -> None:
        self.PROVIDER = provider
        self._delay = delay
        self._fail = fail
        self._data = data
        self.calls: List[str] = []
        self.finished = 0
        self.closed = False

    async def query(self, cnpj: str):
        self.calls.append(cnpj)
        await asyncio.sleep(self._delay)
        self.finished += 1
        if self._fail:
            return Failure(self.PROVIDER, "scripted failure", attempts=1)
        data = copy.deepcopy(self._data if self._data is not None else PAYLOADS[self.PROVIDER])
        # echo the requested number so superseded requests are recognisable
        if self.PROVIDER is ProviderId.CNPJA:
            data["taxId"] = cnpj
        else:
            data["cnpj"] = cnpj
        return Success(SourceRecord(self.PROVIDER, data))

    async def close(self) -> None:
        self.closed = True


class FakeSleep:
    """Records retry delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def payloads() -> Dict[ProviderId, Dict[str, Any]]:
    return copy.deepcopy(PAYLOADS)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def make_parsers() -> Callable[..., List[ScriptedParser]]:
    """Build the three scripted adapters.

    ``delays`` and ``failing`` are keyed by ProviderId; unlisted providers
    answer immediately and succeed.
    """

    def factory(delays: Optional[Dict[ProviderId, float]] = None,
                failing: tuple = ()) -> List[ScriptedParser]:
        delays = delays or {}
        return [
            ScriptedParser(provider, delay=delays.get(provider, 0.0), fail=provider in failing)
            for provider in ProviderId
        ]

    return factory
