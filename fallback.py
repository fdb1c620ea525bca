from aiogram import F, Router, types
from aiogram.fsm.context import FSMContext

class Fallback:
    router = Router()

    def __init__(self):
        pass

    @router.message(F.text & ~F.via_bot & ~F.forward_from)
    async def text_fallback(message: types.Message, state: FSMContext):
        # Any text outside a state that is not a CNPJ
        st = await state.get_state()
        if st is None:
            await message.answer(
                "🏢 Olá! Eu consulto empresas brasileiras pelo CNPJ.\n\n"
                "📋 Comandos disponíveis:\n"
                "/start - Início\n"
                "/cnpj - Consultar um CNPJ\n"
                "/help - Ajuda\n"
                "🔍 Envie um CNPJ (14 dígitos) para começar:"
            )
