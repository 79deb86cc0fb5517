# painel/quadro.py
"""
Quadro de pedidos (kanban).

Guarda a lista de pedidos em memória e deriva as três colunas ativas
(Novo, Em preparo, Em entrega). Toda alteração local só acontece depois
que o banco confirmou; em caso de falha o estado fica como estava.
"""
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

from .errors import FormError, NotFound
from .gateway import Gateway
from .pedidos import OrderService
from .produtos import GroupService, ProductService
from .promocoes import PromotionService
from .schemas import Group, Order, OrderIn, OrderItem, OrderStatus, PaymentMethod, Product, Promotion

NEXT_STATUS: Dict[str, str] = {
    OrderStatus.NEW.value: OrderStatus.PREPARING.value,
    OrderStatus.PREPARING.value: OrderStatus.DELIVERING.value,
    OrderStatus.DELIVERING.value: OrderStatus.DONE.value,
}

DECLINE_PROMPT = "Tem certeza que deseja recusar/excluir este pedido?"

PAYMENT_METHODS = {m.value for m in PaymentMethod}


def next_status(status: str) -> str:
    """Próximo status; o status final (e desconhecidos) mapeia para si mesmo."""
    return NEXT_STATUS.get(status, status)


def order_total(items: List[OrderItem]) -> float:
    return round(sum(i.unit_price * i.quantity for i in items), 2)


def _newest_first(order: Order):
    return order.created_at or datetime.min


class OrderBoard:
    def __init__(self, service: OrderService):
        self.service = service
        self.orders: List[Order] = []

    def load(self) -> List[Order]:
        self.orders = sorted(self.service.list_orders(), key=_newest_first, reverse=True)
        return self.orders

    def in_status(self, status: OrderStatus) -> List[Order]:
        return [o for o in self.orders if o.status == status.value]

    def columns(self) -> Dict[str, List[Order]]:
        return {
            "new": self.in_status(OrderStatus.NEW),
            "preparing": self.in_status(OrderStatus.PREPARING),
            "delivering": self.in_status(OrderStatus.DELIVERING),
        }

    def _find(self, order_id: int) -> Order:
        for order in self.orders:
            if order.id == order_id:
                return order
        raise NotFound("Pedido não encontrado")

    def advance(self, order_id: int) -> Order:
        order = self._find(order_id)
        status = next_status(order.status)
        if status == order.status:
            return order

        self.service.move_order(order_id, status)
        order.status = status
        # finalizados saem do quadro
        if status == OrderStatus.DONE.value:
            self.orders = [o for o in self.orders if o.id != order_id]
        return order

    def decline(self, order_id: int, confirm: Callable[[str], bool]) -> bool:
        self._find(order_id)
        if not confirm(DECLINE_PROMPT):
            return False
        self.service.delete_order(order_id)
        self.orders = [o for o in self.orders if o.id != order_id]
        return True

    def create(self, form: OrderIn) -> Order:
        if not form.items:
            raise FormError("Adicione pelo menos um item ao pedido.")
        _require_customer(form.customer_name, form.delivery_address)
        order = self.service.create_order(form, order_total(form.items))
        self.orders.insert(0, order)
        return order


def _require_customer(customer_name: Optional[str], delivery_address: Optional[str]) -> None:
    if not (customer_name or "").strip() or not (delivery_address or "").strip():
        raise FormError("Informe o nome do cliente e o endereço de entrega.")


# -----------------------------------------------------------------------------
# Pedido manual
# -----------------------------------------------------------------------------
class OrderCatalog(NamedTuple):
    products: List[Product]
    groups: List[Group]
    promotions: List[Promotion]


def load_order_catalog(gateway: Gateway) -> OrderCatalog:
    return OrderCatalog(
        products=ProductService(gateway).list_products(),
        groups=GroupService(gateway).list_groups(),
        promotions=PromotionService(gateway).list_promotions(),
    )


class OrderDraft:
    """Carrinho do pedido manual, montado a partir do catálogo."""

    def __init__(self, catalog: OrderCatalog, items: Optional[List[OrderItem]] = None):
        self.products = {p.id: p for p in catalog.products}
        self.promotions = {p.id: p for p in catalog.promotions}
        self.items: List[OrderItem] = list(items or [])

    def add(self, kind: str, item_id: int) -> OrderItem:
        if kind == "produto":
            product = self.products.get(item_id)
            if product is None:
                raise FormError("Produto não encontrado no catálogo.")
            item = OrderItem(kind=kind, name=product.name, unit_price=product.price)
        elif kind == "promocao":
            promotion = self.promotions.get(item_id)
            if promotion is None:
                raise FormError("Promoção não encontrada no catálogo.")
            item = OrderItem(
                kind=kind,
                name=promotion.name,
                unit_price=promotion.effective_price,
                promotion_id=promotion.id,
            )
        else:
            raise FormError(f"Tipo de item inválido: {kind}")
        self.items.append(item)
        return item

    def update(self, index: int, quantity: Optional[int] = None, unit_price: Optional[float] = None) -> OrderItem:
        item = self._item(index)
        if quantity is not None:
            if quantity < 1:
                raise FormError("Quantidade deve ser pelo menos 1.")
            item.quantity = quantity
        if unit_price is not None:
            if unit_price < 0:
                raise FormError("Preço inválido.")
            item.unit_price = unit_price
        return item

    def remove(self, index: int) -> None:
        self._item(index)
        del self.items[index]

    def _item(self, index: int) -> OrderItem:
        if not 0 <= index < len(self.items):
            raise FormError("Item inexistente no pedido.")
        return self.items[index]

    def total(self) -> float:
        return order_total(self.items)

    def to_form(self, customer_name: str, delivery_address: str, payment_method: str, notes: str = "") -> OrderIn:
        _require_customer(customer_name, delivery_address)
        if payment_method not in PAYMENT_METHODS:
            raise FormError("Forma de pagamento inválida.")
        return OrderIn(
            customer_name=customer_name.strip(),
            delivery_address=delivery_address.strip(),
            payment_method=payment_method,
            notes=notes,
            items=list(self.items),
        )
