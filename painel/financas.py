# painel/financas.py
"""Área financeira: transações derivadas dos pedidos, filtros, métricas e relatório."""
import logging
from typing import List, Optional

from .gateway import Gateway
from .schemas import FinanceSummary, Transaction
from .utils import backend_call, calendar_day, format_br_date, to_float

logger = logging.getLogger(__name__)

REPORT_FILENAME = "relatorio-financas.txt"
REPORT_HEADER = "Relatório de Transações\n\nData,Valor,Pagamento,Status\n"


class FinanceService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def list_transactions(self) -> List[Transaction]:
        with backend_call(logger, "Erro ao buscar transações financeiras", "Erro ao carregar dados financeiros."):
            rows = (
                self.gw.table("pedidos")
                .select("id", "total", "forma_pagamento", "status", "criado_em")
                .order("criado_em", desc=True)
                .order("id", desc=True)
                .execute()
            )
        return [
            Transaction(
                id=r["id"],
                value=to_float(r.get("total")),
                payment_method=r.get("forma_pagamento"),
                status=r.get("status") or "",
                date=calendar_day(r.get("criado_em")),
            )
            for r in rows
        ]


class FinanceReporter:
    """Mantém o conjunto original e o conjunto filtrado."""

    def __init__(self, service: FinanceService):
        self.service = service
        self.original: List[Transaction] = []
        self.filtered: List[Transaction] = []
        self.date_filter: Optional[str] = None
        self.payment_filter: Optional[str] = None

    def load(self) -> List[Transaction]:
        self.original = self.service.list_transactions()
        return self.apply_filters(self.date_filter, self.payment_filter)

    def apply_filters(self, date: Optional[str] = None, payment: Optional[str] = None) -> List[Transaction]:
        # sempre a partir do conjunto original
        self.date_filter = date or None
        self.payment_filter = payment or None
        rows = self.original
        if self.date_filter:
            rows = [t for t in rows if t.date == self.date_filter]
        if self.payment_filter:
            rows = [t for t in rows if t.payment_method == self.payment_filter]
        self.filtered = list(rows)
        return self.filtered

    def summary(self) -> FinanceSummary:
        total = sum(t.value for t in self.filtered)
        count = len(self.filtered)
        return FinanceSummary(
            total_sales=round(total, 2),
            order_count=count,
            average_ticket=round(total / count, 2) if count else 0.0,
        )

    def export_text(self) -> str:
        lines = [
            f"{format_br_date(t.date)},R$ {t.value:.2f},{t.payment_method or ''},{t.status}"
            for t in self.filtered
        ]
        return REPORT_HEADER + "\n".join(lines)
