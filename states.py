"""
FSM states for the bot
"""
from aiogram.fsm.state import StatesGroup, State


class LookupStates(StatesGroup):
    """Lookup conversation states"""
    CNPJ_INPUT = State()  # waiting for the user to type a CNPJ
