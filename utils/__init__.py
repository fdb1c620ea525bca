"""
Utilities for CNPJ handling and card formatting
"""
from .cnpj import (
    clean_cnpj,
    validate_cnpj,
    format_cnpj,
)
from .formatters import (
    escape_html,
    format_phone,
    format_date,
    format_capital,
)

__all__ = [
    'clean_cnpj',
    'validate_cnpj',
    'format_cnpj',
    'escape_html',
    'format_phone',
    'format_date',
    'format_capital',
]
