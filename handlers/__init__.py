"""
Telegram bot handlers
"""
from .start import register_start_handlers
from .lookup import register_lookup_handlers

__all__ = [
    'register_start_handlers',
    'register_lookup_handlers',
]
