# painel/utils.py
import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator, Optional

from .errors import BackendError, GatewayError


def to_float(value: Any, default: float = 0.0) -> float:
    """Valores monetários chegam como Decimal, str ou None."""
    if value is None or value == "":
        return default
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return default


def calendar_day(value: Any) -> str:
    """Data (YYYY-MM-DD) de um timestamp, ou 'N/A'."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value:
        return str(value)[:10]
    return "N/A"


def format_br_date(day: Optional[str]) -> str:
    """'YYYY-MM-DD' -> 'DD/MM/YYYY'."""
    if not day or day == "N/A":
        return "N/A"
    ano, mes, dia = day.split("-")
    return f"{dia}/{mes}/{ano}"


@contextmanager
def backend_call(logger: logging.Logger, log_message: str, user_message: str) -> Iterator[None]:
    """Registra a falha do banco e devolve a mensagem para o usuário."""
    try:
        yield
    except GatewayError as e:
        logger.error("%s: %s", log_message, e.detail)
        raise BackendError(user_message) from e
