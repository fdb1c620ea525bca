"""
Text formatting helpers for the company card (Telegram HTML).
"""
import re
from datetime import date


def escape_html(text: str) -> str:
    """Escape HTML characters before sending text to Telegram."""
    if not text:
        return text
    return (text
            .replace('&', '&amp;')
            .replace('<', '&lt;')
            .replace('>', '&gt;')
            .replace('"', '&quot;'))


def format_phone(phone) -> str:
    """(11) 91234-5678 for mobiles, (11) 1234-5678 for landlines."""
    if not phone:
        return 'N/A'
    num = re.sub(r'\D', '', str(phone))
    if len(num) == 11:
        return f"({num[:2]}) {num[2:7]}-{num[7:]}"
    if len(num) == 10:
        return f"({num[:2]}) {num[2:6]}-{num[6:]}"
    return str(phone)


def format_date(value) -> str | None:
    """ISO date (2001-05-10 or 2001-05-10T00:00:00Z) -> 10/05/2001.

    Dates already in dd/mm/yyyy form are returned unchanged.
    """
    if not value:
        return None
    text = str(value)
    try:
        parsed = date.fromisoformat(text[:10])
    except ValueError:
        return text
    return parsed.strftime('%d/%m/%Y')


def format_capital(value) -> str:
    """1234.5 -> 'R$ 1.234,50'."""
    if value is None or value == '':
        return 'N/A'
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 'N/A'
    # en-US grouping first, then swap separators to pt-BR
    formatted = f"{amount:,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"R$ {formatted}"
