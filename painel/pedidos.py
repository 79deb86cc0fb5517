# painel/pedidos.py
"""Serviço de pedidos (tabela ``pedidos``)."""
import logging
from typing import Any, Dict, List

from .errors import NotFound
from .gateway import Gateway, Row
from .schemas import Order, OrderIn, OrderItem
from .utils import backend_call, to_float

logger = logging.getLogger(__name__)

TABLE = "pedidos"


def item_to_wire(item: OrderItem) -> Dict[str, Any]:
    return {
        "tipo": item.kind,
        "nome": item.name,
        "preco_final": item.unit_price,
        "quantidade": item.quantity,
        "promocao_info": item.promotion_id,
    }


def item_from_wire(raw: Dict[str, Any]) -> OrderItem:
    return OrderItem(
        kind=raw.get("tipo") or "produto",
        name=raw.get("nome") or "",
        unit_price=to_float(raw.get("preco_final")),
        quantity=int(raw.get("quantidade") or 1),
        promotion_id=raw.get("promocao_info"),
    )


def order_from_wire(row: Row) -> Order:
    return Order(
        id=row["id"],
        customer_name=row.get("cliente_nome"),
        delivery_address=row.get("endereco_entrega"),
        payment_method=row.get("forma_pagamento") or "",
        notes=row.get("observacoes"),
        status=row.get("status") or "Novo",
        total=to_float(row.get("total")),
        # JSON nulo vira lista vazia
        items=[item_from_wire(i) for i in (row.get("itens_pedido_json") or [])],
        created_at=row.get("criado_em"),
    )


class OrderService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def list_orders(self) -> List[Order]:
        """Todos os pedidos, do mais novo para o mais antigo."""
        with backend_call(logger, "Erro ao buscar pedidos", "Erro ao carregar pedidos."):
            rows = (
                self.gw.table(TABLE)
                .select("*")
                .order("criado_em", desc=True)
                .order("id", desc=True)
                .execute()
            )
        return [order_from_wire(r) for r in rows]

    def create_order(self, form: OrderIn, total: float) -> Order:
        # status fica com o default da tabela ('Novo')
        row = {
            "cliente_nome": form.customer_name or None,
            "endereco_entrega": form.delivery_address or None,
            "forma_pagamento": form.payment_method.value,
            "observacoes": form.notes or None,
            "total": round(total, 2),
            "itens_pedido_json": [item_to_wire(i) for i in form.items],
        }
        with backend_call(logger, "Erro ao adicionar novo pedido", "Falha ao registrar o pedido."):
            created = self.gw.table(TABLE).insert(row)
        return order_from_wire(created[0])

    def move_order(self, order_id: int, status: str) -> Order:
        with backend_call(logger, "Erro ao mover pedido", "Erro ao atualizar o status do pedido."):
            rows = self.gw.table(TABLE).eq("id", order_id).update({"status": status})
        if not rows:
            raise NotFound("Pedido não encontrado")
        return order_from_wire(rows[0])

    def delete_order(self, order_id: int) -> None:
        with backend_call(logger, "Erro ao deletar pedido", "Erro ao excluir o pedido."):
            deleted = self.gw.table(TABLE).eq("id", order_id).delete()
        if not deleted:
            raise NotFound("Pedido não encontrado")
