from datetime import datetime

import pytest

from painel.errors import BackendError, FormError, NotFound
from painel.pedidos import OrderService
from painel.quadro import (
    DECLINE_PROMPT,
    OrderBoard,
    OrderCatalog,
    OrderDraft,
    load_order_catalog,
    next_status,
)
from painel.schemas import Order, OrderIn, OrderItem, Product, Promotion, PromotionItem

CUSTOMER = {"customer_name": "Ana", "delivery_address": "Rua 1"}


class FakeOrders:
    """Serviço em memória; ``fail`` faz toda escrita falhar."""

    def __init__(self, orders):
        self.orders = orders
        self.fail = False
        self.calls = []

    def list_orders(self):
        return [o.model_copy(deep=True) for o in self.orders]

    def move_order(self, order_id, status):
        self.calls.append(("move", order_id, status))
        if self.fail:
            raise BackendError("Erro ao atualizar o status do pedido.")

    def delete_order(self, order_id):
        self.calls.append(("delete", order_id))
        if self.fail:
            raise BackendError("Erro ao excluir o pedido.")


def _order(oid, status="Novo", day=1):
    return Order(id=oid, payment_method="PIX", status=status, total=10, created_at=datetime(2024, 1, day))


@pytest.mark.parametrize(
    "status, expected",
    [
        ("Novo", "Em preparo"),
        ("Em preparo", "Em entrega"),
        ("Em entrega", "Finalizado"),
        ("Finalizado", "Finalizado"),
    ],
)
def test_next_status(status, expected):
    assert next_status(status) == expected


def test_columns_only_active_and_newest_first():
    svc = FakeOrders([
        _order(1, "Novo", day=1),
        _order(2, "Novo", day=5),
        _order(3, "Em preparo"),
        _order(4, "Em entrega"),
        _order(5, "Finalizado"),
    ])
    board = OrderBoard(svc)
    board.load()
    cols = board.columns()

    assert [o.id for o in cols["new"]] == [2, 1]
    assert [o.id for o in cols["preparing"]] == [3]
    assert [o.id for o in cols["delivering"]] == [4]


def test_advance_moves_and_finishes():
    svc = FakeOrders([_order(1, "Em entrega")])
    board = OrderBoard(svc)
    board.load()

    order = board.advance(1)

    assert order.status == "Finalizado"
    assert svc.calls == [("move", 1, "Finalizado")]
    assert board.orders == []


def test_advance_terminal_is_noop():
    svc = FakeOrders([_order(1, "Finalizado")])
    board = OrderBoard(svc)
    board.load()

    assert board.advance(1).status == "Finalizado"
    assert svc.calls == []


def test_failed_advance_leaves_state():
    svc = FakeOrders([_order(1, "Novo")])
    board = OrderBoard(svc)
    board.load()
    svc.fail = True

    with pytest.raises(BackendError):
        board.advance(1)
    assert board.orders[0].status == "Novo"


def test_decline_needs_confirmation():
    svc = FakeOrders([_order(1), _order(2)])
    board = OrderBoard(svc)
    board.load()
    prompts = []

    def refuse(msg):
        prompts.append(msg)
        return False

    assert board.decline(1, refuse) is False
    assert prompts == [DECLINE_PROMPT]
    assert svc.calls == []

    assert board.decline(1, lambda _msg: True) is True
    assert [o.id for o in board.orders] == [2]


def test_failed_decline_keeps_order():
    svc = FakeOrders([_order(1)])
    board = OrderBoard(svc)
    board.load()
    svc.fail = True

    with pytest.raises(BackendError):
        board.decline(1, lambda _msg: True)
    assert [o.id for o in board.orders] == [1]


def test_unknown_order():
    board = OrderBoard(FakeOrders([]))
    board.load()
    with pytest.raises(NotFound):
        board.advance(99)


def test_create_computes_total_and_goes_on_top(gw):
    board = OrderBoard(OrderService(gw))
    board.load()
    board.create(OrderIn(**CUSTOMER, items=[OrderItem(name="a", unit_price=5, quantity=1)]))

    order = board.create(OrderIn(**CUSTOMER, items=[
        OrderItem(name="x", unit_price=10, quantity=2),
        OrderItem(name="y", unit_price=5, quantity=1),
    ]))

    assert order.total == 25
    assert order.status == "Novo"
    assert board.orders[0].id == order.id


def test_create_without_items_is_rejected(gw):
    board = OrderBoard(OrderService(gw))
    with pytest.raises(FormError):
        board.create(OrderIn(customer_name="Ana", delivery_address="Rua 1"))
    assert gw.table("pedidos").select("id").execute() == []


@pytest.mark.parametrize(
    "customer",
    [
        {},
        {"customer_name": "Ana"},
        {"delivery_address": "Rua 1"},
        {"customer_name": "  ", "delivery_address": "Rua 1"},
    ],
)
def test_create_requires_name_and_address(gw, customer):
    board = OrderBoard(OrderService(gw))
    with pytest.raises(FormError) as exc:
        board.create(OrderIn(**customer, items=[OrderItem(name="x", unit_price=1)]))
    assert exc.value.detail == "Informe o nome do cliente e o endereço de entrega."
    assert board.orders == []
    assert gw.table("pedidos").select("id").execute() == []


# -----------------------------------------------------------------------------
# Pedido manual
# -----------------------------------------------------------------------------
def _catalog():
    return OrderCatalog(
        products=[Product(id=1, name="Pizza", price=40)],
        groups=[],
        promotions=[
            Promotion(id=7, name="Combo", items=[PromotionItem(product_name="Pizza", adjusted_price=30, quantity=1)]),
            Promotion(id=8, name="Fixa", fixed_total=50),
        ],
    )


def test_draft_add_update_remove():
    draft = OrderDraft(_catalog())
    draft.add("produto", 1)
    draft.add("promocao", 7)
    draft.add("promocao", 8)

    assert [(i.kind, i.unit_price) for i in draft.items] == [("produto", 40), ("promocao", 30), ("promocao", 50)]
    assert draft.items[1].promotion_id == 7

    draft.update(0, quantity=2)
    draft.remove(2)
    assert draft.total() == 110

    with pytest.raises(FormError):
        draft.update(0, quantity=0)
    with pytest.raises(FormError):
        draft.add("produto", 99)


def test_draft_form_requires_name_and_address():
    draft = OrderDraft(_catalog())
    draft.add("produto", 1)
    with pytest.raises(FormError):
        draft.to_form("Ana", "  ", "PIX")

    form = draft.to_form(" Ana ", "Rua 1", "PIX")
    assert form.customer_name == "Ana"
    assert len(form.items) == 1


def test_draft_form_rejects_unknown_payment_method():
    draft = OrderDraft(_catalog())
    draft.add("produto", 1)
    with pytest.raises(FormError) as exc:
        draft.to_form("Ana", "Rua 1", "Cheque")
    assert exc.value.detail == "Forma de pagamento inválida."


def test_load_order_catalog(gw):
    gw.table("produtos").insert({"nome": "Pizza", "preco": 40})
    catalog = load_order_catalog(gw)
    assert [p.name for p in catalog.products] == ["Pizza"]
    assert catalog.groups == [] and catalog.promotions == []
