"""
Handlers for /start, /help and the main menu
"""
from aiogram import Router, F, types
from aiogram.filters import Command, CommandStart
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.fsm.context import FSMContext

WELCOME_TEXT = (
    "🏢 Olá! Eu consulto empresas brasileiras pelo CNPJ.\n\n"
    "Busco os dados em três fontes ao mesmo tempo (CNPJá, ReceitaWS e BrasilAPI) "
    "e mostro o cartão assim que a primeira responder.\n\n"
    "📋 Comandos disponíveis:\n"
    "/start — Início\n"
    "/cnpj — Consultar um CNPJ\n"
    "/help — Ajuda\n\n"
    "🔍 Escolha uma opção ou simplesmente envie um CNPJ:"
)

HELP_TEXT = (
    "📋 Como usar:\n\n"
    "/cnpj 11.222.333/0001-81 — consulta direta\n"
    "/cnpj — o bot pede o número\n"
    "Ou envie apenas o CNPJ, com ou sem máscara.\n\n"
    "Fontes:\n"
    "• CNPJá — fonte principal, substitui os dados preliminares\n"
    "• ReceitaWS — atividades secundárias\n"
    "• BrasilAPI — quadro societário\n\n"
    "Regime tributário: a opção mais específica informada vence "
    "(SIMEI > Simples > Normal). ⚠️ indica que as fontes não concordam."
)


def _main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔍 Consultar CNPJ", callback_data="lookup")],
            [InlineKeyboardButton(text="❓ Ajuda", callback_data="help")],
        ]
    )


def _back_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Início", callback_data="start_over")]
        ]
    )


def register_start_handlers(router: Router):
    """Registers /start, /help and the main menu"""

    @router.message(CommandStart())
    async def start(message: types.Message, state: FSMContext):
        await state.clear()
        await message.answer(WELCOME_TEXT, reply_markup=_main_menu())

    @router.message(Command("help"))
    async def help_command(message: types.Message):
        await message.answer(HELP_TEXT, reply_markup=_back_keyboard())

    @router.callback_query(F.data == "start_over")
    async def start_over_callback(query: types.CallbackQuery, state: FSMContext):
        await query.answer()
        await state.clear()
        await query.message.edit_text(WELCOME_TEXT, reply_markup=_main_menu())

    @router.callback_query(F.data == "help")
    async def help_btn(query: types.CallbackQuery):
        await query.message.edit_text(HELP_TEXT, reply_markup=_back_keyboard())
        await query.answer()
