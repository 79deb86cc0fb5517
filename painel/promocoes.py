# painel/promocoes.py
"""
Serviço de promoções (tabelas ``promocoes`` e ``promocao_itens``).

Os itens de uma promoção são sincronizados por substituição: na
atualização todos os itens gravados são apagados e a lista enviada é
inserida de novo. São chamadas separadas, sem transação entre elas; se a
inserção falhar depois do delete, a promoção fica sem itens.
"""
import logging
from typing import Any, Dict, List

from .errors import NotFound
from .gateway import Gateway, Row
from .schemas import Promotion, PromotionIn, PromotionItem
from .utils import backend_call, to_float

logger = logging.getLogger(__name__)

PROMOTIONS = "promocoes"
ITEMS = "promocao_itens"


def header_to_wire(payload: PromotionIn) -> Dict[str, Any]:
    return {
        "nome": payload.name.strip(),
        "descricao": payload.description or "",
        "validade": payload.validity or "",
        "valor_total": payload.fixed_total,
    }


def items_to_wire(promotion_id: int, items: List[PromotionItem]) -> List[Dict[str, Any]]:
    return [
        {
            "promocao_id": promotion_id,
            "produto_nome": item.product_name,
            "preco_ajustado": item.adjusted_price,
            "quantidade": item.quantity,
        }
        for item in items
    ]


def item_from_wire(row: Row) -> PromotionItem:
    price = row.get("preco_ajustado")
    return PromotionItem(
        product_name=row["produto_nome"],
        adjusted_price=None if price is None else to_float(price),
        quantity=int(row.get("quantidade") or 1),
    )


def promotion_from_wire(row: Row) -> Promotion:
    total = row.get("valor_total")
    return Promotion(
        id=row["id"],
        name=row["nome"],
        description=row.get("descricao") or "",
        validity=row.get("validade") or "",
        fixed_total=None if total is None else to_float(total),
        items=[item_from_wire(i) for i in row.get("itens") or []],
        created_at=row.get("criado_em"),
    )


class PromotionService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def _query(self):
        return self.gw.table(PROMOTIONS).select("*", embed=(ITEMS, None, "itens"))

    def list_promotions(self) -> List[Promotion]:
        with backend_call(logger, "Erro ao buscar promoções", "Falha ao carregar promoções."):
            rows = self._query().order("criado_em", desc=True).order("id", desc=True).execute()
        return [promotion_from_wire(r) for r in rows]

    def get_promotion(self, promotion_id: int) -> Promotion:
        with backend_call(logger, "Erro ao buscar promoção", "Falha ao carregar a promoção."):
            row = self._query().eq("id", promotion_id).single()
        if row is None:
            raise NotFound("Promoção não encontrada")
        return promotion_from_wire(row)

    def create_promotion(self, payload: PromotionIn) -> Promotion:
        with backend_call(logger, "Erro ao adicionar cabeçalho da promoção", "Erro ao salvar promoção."):
            header = self.gw.table(PROMOTIONS).insert(header_to_wire(payload))[0]

        with backend_call(logger, "Erro ao adicionar itens da promoção", "Erro ao salvar promoção."):
            items = self.gw.table(ITEMS).insert(items_to_wire(header["id"], payload.items))

        return promotion_from_wire({**header, "itens": items})

    def update_promotion(self, promotion_id: int, payload: PromotionIn) -> Promotion:
        with backend_call(logger, "Erro ao atualizar cabeçalho da promoção", "Erro ao salvar promoção."):
            rows = self.gw.table(PROMOTIONS).eq("id", promotion_id).update(header_to_wire(payload))
        if not rows:
            raise NotFound("Promoção não encontrada")

        with backend_call(logger, "Erro ao deletar itens antigos", "Erro ao salvar promoção."):
            self.gw.table(ITEMS).eq("promocao_id", promotion_id).delete()

        with backend_call(logger, "Erro ao reinserir novos itens", "Erro ao salvar promoção."):
            items = self.gw.table(ITEMS).insert(items_to_wire(promotion_id, payload.items))

        return promotion_from_wire({**rows[0], "itens": items})

    def delete_promotion(self, promotion_id: int) -> None:
        # itens saem junto (ON DELETE CASCADE)
        with backend_call(logger, "Erro ao deletar promoção", "Erro ao deletar promoção. Tente novamente."):
            deleted = self.gw.table(PROMOTIONS).eq("id", promotion_id).delete()
        if not deleted:
            raise NotFound("Promoção não encontrada")
