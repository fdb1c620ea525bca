"""
Handler for "Consultar CNPJ" -- look up a company in the three CNPJ sources.

Flow:
1. User sends /cnpj <number>, presses "Consultar CNPJ" or just pastes a CNPJ
2. Bot answers with a "consulting" message
3. The chat's LookupOrchestrator queries CNPJá, ReceitaWS and BrasilAPI at once
4. TelegramRenderSink edits that message as data arrives: first card
   (preliminary when it did not come from CNPJá), CNPJá override, merged
   secondary activities / partners, tax regime consensus
5. A newer lookup in the same chat supersedes the running one
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from aiogram import Router, F, types
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

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
from parsers.manager import ParserManager
from services.extraction import PARTNERS, SECONDARY_ACTIVITIES, STATE_REGISTRATIONS
from services.orchestrator import LookupOrchestrator
from states import LookupStates
from utils.formatters import escape_html, format_capital, format_date, format_phone
from utils.cnpj import format_cnpj

logger = logging.getLogger(__name__)

TELEGRAM_TEXT_LIMIT = 4000
CNPJ_TEXT_PATTERN = r"^\s*[\d.\-/\s]{14,20}\s*$"

WAIT_TEXT = "⏳ Consultando CNPJá, ReceitaWS e BrasilAPI..."
ALL_FAILED_TEXT = (
    "❌ Não foi possível obter os dados da empresa. "
    "As fontes podem estar indisponíveis, tente novamente em instantes."
)

_STATUS_ICONS = {"ativa": "🟢", "baixada": "🔴", "nula": "🔴"}


def _line(label: str, value: Any) -> str:
    return f"  • {label}: {escape_html(str(value)) if value not in (None, '') else 'N/A'}"


def fit_message(text: str, limit: int = TELEGRAM_TEXT_LIMIT) -> str:
    """Cut ``text`` to ``limit`` on a line boundary so no HTML tag is split."""
    if len(text) <= limit:
        return text
    cut = text.rfind("\n", 0, limit)
    if cut <= 0:
        cut = limit
    return text[:cut] + "\n..."


def render_card(
    provider: ProviderId,
    profile: CompanyProfile,
    consensus: ConsensusDisplay,
    is_preliminary: bool,
    supplementary: Optional[Dict[str, Any]] = None,
) -> str:
    """Build the Telegram HTML card for the current view."""
    supplementary = supplementary or {}
    parts = []

    status_icon = _STATUS_ICONS.get(profile.status.lower(), "🟡")
    regime = escape_html(consensus.text)
    if consensus.needs_attention:
        regime += " ⚠️"

    parts.append("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    parts.append(f"🏢 <b>{escape_html(profile.alias or profile.name or 'N/A')}</b>")
    parts.append(f"<code>{format_cnpj(profile.cnpj)}</code>")
    parts.append(f"{status_icon} {escape_html(profile.status or 'Desconhecido')}  |  🧾 {regime}")
    parts.append("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━\n")

    if is_preliminary:
        parts.append(
            f"ℹ️ <i>Dados preliminares de {provider.title}. "
            f"Aguardando a fonte principal (CNPJá)...</i>\n"
        )

    parts.append("<b>📋 Informações Básicas</b>")
    parts.append(_line("Razão Social", profile.name))
    parts.append(_line("Nome Fantasia", profile.alias))
    parts.append(_line("Data de Abertura", format_date(profile.founded)))
    parts.append(_line("Porte", profile.size))
    parts.append(f"  • Capital Social: {format_capital(profile.equity)}")
    parts.append("")

    parts.append("<b>🏭 Atividade Econômica</b>")
    main = profile.main_activity
    if main:
        parts.append(f"  • Principal: {escape_html(main.get('text', 'N/A'))} ({escape_html(main.get('code', 'N/A'))})")
    else:
        parts.append("  • Principal: N/A")
    parts.append(_line("Natureza Jurídica", profile.legal_nature))
    activities = supplementary.get(SECONDARY_ACTIVITIES, profile.secondary_activities)
    if activities:
        parts.append(f"  • Atividades Secundárias ({len(activities)}):")
        for activity in activities[:5]:
            parts.append(f"     – {escape_html(activity.get('text', 'N/A'))} ({escape_html(activity.get('code', 'N/A'))})")
        if len(activities) > 5:
            parts.append(f"     <i>... e mais {len(activities) - 5}.</i>")
    else:
        parts.append("  • Atividades Secundárias: Nenhuma encontrada.")
    parts.append("")

    address = profile.address
    parts.append("<b>📍 Endereço</b>")
    street = ", ".join(p for p in (address.get("street"), address.get("number") or "S/N") if p)
    if address.get("details"):
        street += f" - {address['details']}"
    parts.append(f"  • {escape_html(street)}")
    parts.append(_line("Bairro", address.get("district")))
    parts.append(f"  • {escape_html(address.get('city') or 'N/A')} / {escape_html(address.get('state') or 'N/A')}")
    parts.append(_line("CEP", address.get("zip")))
    parts.append("")

    parts.append("<b>📞 Contato</b>")
    if profile.phones:
        for i, phone in enumerate(profile.phones[:2], start=1):
            parts.append(f"  • Telefone {i}: {escape_html(format_phone(phone))}")
    else:
        parts.append("  • Telefone: N/A")
    if profile.emails:
        for i, email in enumerate(profile.emails[:2], start=1):
            parts.append(f"  • Email {i}: {escape_html(email.lower())}")
    else:
        parts.append("  • Email: N/A")
    parts.append("")

    partners = supplementary.get(PARTNERS, profile.partners)
    if partners:
        parts.append(f"<b>👥 Quadro Societário ({len(partners)})</b>")
        for partner in partners[:8]:
            parts.append(f"  • {escape_html(partner.get('name', 'N/A'))} — <i>{escape_html(partner.get('role', 'Sócio'))}</i>")
        if len(partners) > 8:
            parts.append(f"  <i>... e mais {len(partners) - 8} membros.</i>")
        parts.append("")

    registrations = supplementary.get(STATE_REGISTRATIONS) or []
    if registrations:
        parts.append("<b>🎯 Inscrições Estaduais</b>")
        for reg in registrations:
            mark = "⭐ " if reg.get("highlighted") else ""
            if not reg.get("enabled"):
                mark += "✖️ "
            parts.append(
                f"  • {mark}IE {escape_html(reg.get('state', ''))}: <code>{escape_html(reg.get('number', 'N/A'))}</code>"
                f" — {escape_html(reg.get('status', 'Desconhecido'))}"
            )
        parts.append("")

    parts.append(f"<i>Fonte: {provider.title}</i>")
    return "\n".join(parts)


class TelegramRenderSink(RenderSink):
    """Keeps one chat's card in sync by editing a single bot message."""

    def __init__(self):
        self._message: Optional[types.Message] = None
        self._provider: Optional[ProviderId] = None
        self._profile: Optional[CompanyProfile] = None
        self._consensus: Optional[ConsensusDisplay] = None
        self._is_preliminary = False
        self._supplementary: Dict[str, Any] = {}

    def attach(self, message: types.Message):
        """Point the sink at a fresh "consulting" message and forget the old card."""
        self._message = message
        self._provider = None
        self._profile = None
        self._consensus = None
        self._is_preliminary = False
        self._supplementary = {}

    async def emit(self, event: RenderEvent) -> None:
        if isinstance(event, InitialRender):
            self._provider = event.provider
            self._profile = event.profile
            self._consensus = event.consensus
            self._is_preliminary = event.is_preliminary
            self._supplementary = {}
            await self._show_card()
        elif isinstance(event, SupplementaryUpdate):
            self._supplementary[event.field] = event.data
            await self._show_card()
        elif isinstance(event, ConsensusUpdated):
            self._consensus = event.consensus
            await self._show_card()
        elif isinstance(event, ValidationRejected):
            await self._edit(f"❌ {escape_html(event.reason)}")
        elif isinstance(event, AllSourcesFailed):
            await self._edit(ALL_FAILED_TEXT)

    async def _show_card(self):
        if self._profile is None:
            return
        text = render_card(
            self._provider,
            self._profile,
            self._consensus,
            self._is_preliminary,
            self._supplementary,
        )
        await self._edit(text)

    async def _edit(self, text: str):
        if self._message is None:
            logger.warning("TelegramRenderSink: no message attached, dropping update")
            return
        try:
            await self._message.edit_text(fit_message(text), parse_mode="HTML")
        except TelegramBadRequest as e:
            if "message is not modified" in str(e):
                logger.debug(f"Telegram edit skipped: {e}")
            else:
                logger.warning(f"⚠️ Telegram rejected card edit: {e}")
        except TelegramAPIError as e:
            # flood control, network errors: the next event edits again
            logger.warning(f"⚠️ Telegram edit failed: {e}")


class ChatLookupSession:
    """Orchestrator + sink pair owned by one chat."""

    def __init__(self, manager: ParserManager):
        self.sink = TelegramRenderSink()
        self.orchestrator = LookupOrchestrator(manager, self.sink)

    async def lookup(self, message: types.Message, raw_input: str):
        # supersede first so nothing from an older lookup lands on the new message
        context = self.orchestrator.submit(raw_input)
        wait_msg = await message.answer(WAIT_TEXT)
        self.sink.attach(wait_msg)
        return await self.orchestrator.run(context)


def _next_steps_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔍 Consultar outro CNPJ", callback_data="lookup")],
        ]
    )


def register_lookup_handlers(router: Router, manager: ParserManager):
    """Register /cnpj, the "Consultar CNPJ" button and plain CNPJ messages."""

    sessions: Dict[int, ChatLookupSession] = {}

    def _session(chat_id: int) -> ChatLookupSession:
        if chat_id not in sessions:
            sessions[chat_id] = ChatLookupSession(manager)
        return sessions[chat_id]

    async def _run_lookup(message: types.Message, raw_input: str):
        session = _session(message.chat.id)
        context = await session.lookup(message, raw_input)
        if not session.orchestrator.is_current(context):
            return
        if context.rendered or context.all_failed_reported:
            await message.answer("O que deseja fazer agora?", reply_markup=_next_steps_keyboard())

    @router.message(Command("cnpj"))
    async def lookup_cmd(message: types.Message, command: CommandObject, state: FSMContext):
        if not command.args:
            await message.answer(
                "🔍 <b>Consultar CNPJ</b>\n\nDigite o <b>CNPJ</b> da empresa (14 dígitos, com ou sem máscara):",
                parse_mode="HTML",
            )
            await state.set_state(LookupStates.CNPJ_INPUT)
            return
        await state.clear()
        await _run_lookup(message, command.args)

    @router.callback_query(F.data == "lookup")
    async def lookup_btn(query: types.CallbackQuery, state: FSMContext):
        await query.message.answer(
            "🔍 <b>Consultar CNPJ</b>\n\nDigite o <b>CNPJ</b> da empresa (14 dígitos, com ou sem máscara):",
            parse_mode="HTML",
        )
        await state.set_state(LookupStates.CNPJ_INPUT)
        await query.answer()

    @router.message(LookupStates.CNPJ_INPUT, F.text)
    async def process_lookup_input(message: types.Message, state: FSMContext):
        await state.clear()
        await _run_lookup(message, message.text)

    @router.message(F.text.regexp(CNPJ_TEXT_PATTERN))
    async def lookup_plain_text(message: types.Message):
        await _run_lookup(message, message.text)
