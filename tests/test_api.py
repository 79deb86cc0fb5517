from painel import config
from painel.errors import GatewayError
from painel.gateway import TableQuery

MOCK_LOGIN = {"email": config.MOCK_EMAIL, "password": config.MOCK_PASSWORD}
CUSTOMER = {"customer_name": "Ana", "delivery_address": "Rua 1"}


# -----------------------------------------------------------------------------
# Sessão
# -----------------------------------------------------------------------------
def test_health(client):
    assert client.get("/api/health").json() == {"ok": True}


def test_api_requires_session(client):
    r = client.get("/api/pedidos")
    assert r.status_code == 401
    assert r.json()["detail"] == "Faça login para continuar"


def test_login_logout_flow(client):
    bad = client.post("/api/auth/login", json={**MOCK_LOGIN, "password": "x"})
    assert bad.status_code == 401
    assert bad.json() == {"detail": "Credenciais inválidas"}

    r = client.post("/api/auth/login", json=MOCK_LOGIN)
    assert r.status_code == 200
    assert r.json() == {"id": "mock-user-123", "email": MOCK_LOGIN["email"]}
    assert config.SESSION_KEY in r.cookies

    assert client.get("/api/auth/me").status_code == 200

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_pages_fall_back_to_login(client):
    r = client.get("/pedidos")
    assert r.status_code == 200
    assert "Entrar" in r.text

    client.post("/api/auth/login", json=MOCK_LOGIN)
    assert "Sair" in client.get("/produtos/grupos/3").text


# -----------------------------------------------------------------------------
# Pedidos
# -----------------------------------------------------------------------------
def test_order_board_flow(auth_client):
    r = auth_client.post("/api/pedidos", json={
        "customer_name": "Ana",
        "delivery_address": "Rua 1",
        "payment_method": "PIX",
        "items": [
            {"name": "X", "unit_price": 10, "quantity": 2},
            {"name": "Y", "unit_price": 5, "quantity": 1},
        ],
    })
    assert r.status_code == 201
    order = r.json()
    assert order["total"] == 25
    assert order["status"] == "Novo"

    board = auth_client.get("/api/pedidos/quadro").json()
    assert [o["id"] for o in board["new"]] == [order["id"]]

    for expected in ("Em preparo", "Em entrega", "Finalizado"):
        moved = auth_client.post(f"/api/pedidos/{order['id']}/avancar")
        assert moved.json()["status"] == expected

    board = auth_client.get("/api/pedidos/quadro").json()
    assert board == {"new": [], "preparing": [], "delivering": []}
    assert auth_client.get("/api/pedidos").json()[0]["status"] == "Finalizado"


def test_order_without_items_is_400(auth_client):
    r = auth_client.post("/api/pedidos", json={"customer_name": "Ana", "items": []})
    assert r.status_code == 400
    assert r.json()["detail"] == "Adicione pelo menos um item ao pedido."


def test_decline_order_needs_confirmation(auth_client):
    oid = auth_client.post("/api/pedidos", json={**CUSTOMER, "items": [{"name": "X", "unit_price": 1}]}).json()["id"]

    assert auth_client.delete(f"/api/pedidos/{oid}").status_code == 400
    assert auth_client.delete(f"/api/pedidos/{oid}?confirmar=true").json() == {"ok": True}
    assert auth_client.get("/api/pedidos").json() == []
    assert auth_client.delete(f"/api/pedidos/{oid}?confirmar=true").status_code == 404


def test_order_draft_item(auth_client):
    pid = auth_client.post("/api/produtos", json={"name": "Pizza", "price": 40}).json()["id"]
    catalog = auth_client.get("/api/pedidos/catalogo").json()
    assert [p["name"] for p in catalog["products"]] == ["Pizza"]

    r = auth_client.post("/api/pedidos/rascunho/item", json={"items": [], "kind": "produto", "item_id": pid})
    assert r.json()["total"] == 40
    assert r.json()["items"][0]["name"] == "Pizza"


def test_backend_failure_is_502_with_message(auth_client, monkeypatch):
    def boom(self):
        raise GatewayError("timeout")

    monkeypatch.setattr(TableQuery, "execute", boom)
    r = auth_client.get("/api/pedidos")
    assert r.status_code == 502
    assert r.json() == {"detail": "Erro ao carregar pedidos."}


# -----------------------------------------------------------------------------
# Grupos e produtos
# -----------------------------------------------------------------------------
def test_groups_and_products(auth_client):
    gid = auth_client.post("/api/grupos", json={"name": "Bebidas"}).json()["id"]
    pid = auth_client.post("/api/produtos", json={"name": "Suco", "price": 8.5}).json()["id"]

    assert auth_client.get(f"/api/grupos/{gid}/produtos").json() == []

    linked = auth_client.put(f"/api/grupos/{gid}/produtos/{pid}").json()
    assert linked["group_id"] == gid
    listed = auth_client.get(f"/api/grupos/{gid}/produtos").json()
    assert [(p["name"], p["group_name"]) for p in listed] == [("Suco", "Bebidas")]

    auth_client.delete(f"/api/grupos/{gid}/produtos/{pid}")
    assert auth_client.get("/api/produtos").json()[0]["group_name"] == "Sem Grupo"

    assert auth_client.put(f"/api/grupos/{gid}", json={"name": "Sucos"}).json()["name"] == "Sucos"
    assert auth_client.delete(f"/api/grupos/{gid}").status_code == 200
    assert auth_client.delete(f"/api/produtos/{pid}").status_code == 200
    assert auth_client.get("/api/produtos").json() == []


# -----------------------------------------------------------------------------
# Promoções
# -----------------------------------------------------------------------------
def test_promotion_replace_read_back(auth_client):
    created = auth_client.post("/api/promocoes", json={
        "name": "Combo",
        "items": [
            {"product_name": "A", "adjusted_price": 10, "quantity": 1},
            {"product_name": "B", "adjusted_price": 5, "quantity": 2},
        ],
    }).json()
    assert created["effective_price"] == 20

    auth_client.put(f"/api/promocoes/{created['id']}", json={
        "name": "Combo",
        "fixed_total": 15,
        "items": [{"product_name": "C", "quantity": 1}],
    })

    (promo,) = auth_client.get("/api/promocoes").json()
    assert [i["product_name"] for i in promo["items"]] == ["C"]
    assert promo["items"][0]["adjusted_price"] is None
    assert promo["effective_price"] == 15


def test_promotion_draft_endpoints(auth_client):
    gid = auth_client.post("/api/grupos", json={"name": "Pizzas"}).json()["id"]
    for name, price in [("Margherita", 38), ("Atum", 42)]:
        auth_client.post("/api/produtos", json={"name": name, "price": price, "group_id": gid})

    items = auth_client.post("/api/promocoes/rascunho/grupo", json={
        "group_id": gid,
        "overrides": {"Atum": {"price": 30}},
    }).json()
    assert [(i["product_name"], i["price"]) for i in items] == [("Atum", 30), ("Margherita", 38)]

    dup = auth_client.post("/api/promocoes/rascunho/item", json={
        "items": items, "group_id": gid, "product_name": "Atum",
    })
    assert dup.status_code == 400

    saved = auth_client.post("/api/promocoes/rascunho/salvar", json={"name": "Rodízio", "items": items})
    assert saved.status_code == 200
    assert len(saved.json()["items"]) == 2


def test_promotion_partial_failure_leaves_no_items(auth_client, monkeypatch):
    pid = auth_client.post("/api/promocoes", json={
        "name": "Combo", "items": [{"product_name": "A", "adjusted_price": 1}],
    }).json()["id"]

    original_insert = TableQuery.insert

    def failing_insert(self, rows):
        if self.table.name == "promocao_itens":
            raise GatewayError("network down")
        return original_insert(self, rows)

    monkeypatch.setattr(TableQuery, "insert", failing_insert)
    r = auth_client.put(f"/api/promocoes/{pid}", json={
        "name": "Combo", "items": [{"product_name": "B", "adjusted_price": 2}],
    })
    assert r.status_code == 502
    assert r.json()["detail"] == "Erro ao salvar promoção."
    monkeypatch.undo()

    (promo,) = auth_client.get("/api/promocoes").json()
    assert promo["items"] == []


# -----------------------------------------------------------------------------
# Finanças e configurações
# -----------------------------------------------------------------------------
def test_finance_and_report(auth_client):
    auth_client.post("/api/pedidos", json={**CUSTOMER, "payment_method": "PIX", "items": [{"name": "X", "unit_price": 30}]})
    auth_client.post("/api/pedidos", json={**CUSTOMER, "payment_method": "Dinheiro", "items": [{"name": "Y", "unit_price": 10}]})

    data = auth_client.get("/api/financas").json()
    assert data["summary"] == {"total_sales": 40, "order_count": 2, "average_ticket": 20}

    pix = auth_client.get("/api/financas", params={"pagamento": "PIX"}).json()
    assert [t["value"] for t in pix["transactions"]] == [30]

    r = auth_client.get("/api/financas/relatorio", params={"pagamento": "PIX"})
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'attachment; filename="relatorio-financas.txt"'
    lines = r.text.split("\n")
    assert lines[:3] == ["Relatório de Transações", "", "Data,Valor,Pagamento,Status"]
    assert lines[3].endswith(",R$ 30.00,PIX,Novo")


def test_settings_roundtrip(auth_client):
    assert auth_client.get("/api/configuracoes").json()["opening_time"] == "18:00"

    body = {
        "store_name": "Orla 33",
        "logo_url": "",
        "opening_time": "17:00",
        "closing_time": "01:00",
        "integrations": {"whatsapp": True, "payment_gateway": False},
    }
    saved = auth_client.put("/api/configuracoes", json=body).json()
    assert saved["store_name"] == "Orla 33"
    assert saved["updated_at"] is not None

    assert auth_client.put("/api/configuracoes", json={**body, "opening_time": "5h"}).status_code == 422


# -----------------------------------------------------------------------------
# Validações
# -----------------------------------------------------------------------------
def test_order_needs_customer_and_address(auth_client):
    r = auth_client.post("/api/pedidos", json={"items": [{"name": "X", "unit_price": 1}]})
    assert r.status_code == 400
    assert r.json()["detail"] == "Informe o nome do cliente e o endereço de entrega."
    assert auth_client.get("/api/pedidos").json() == []


def test_unlink_checks_group(auth_client):
    group_a = auth_client.post("/api/grupos", json={"name": "Bebidas"}).json()["id"]
    group_b = auth_client.post("/api/grupos", json={"name": "Lanches"}).json()["id"]
    pid = auth_client.post("/api/produtos", json={"name": "Suco", "price": 8, "group_id": group_a}).json()["id"]

    r = auth_client.delete(f"/api/grupos/{group_b}/produtos/{pid}")
    assert r.status_code == 404
    assert [p["name"] for p in auth_client.get(f"/api/grupos/{group_a}/produtos").json()] == ["Suco"]

    assert auth_client.delete(f"/api/grupos/{group_a}/produtos/999").status_code == 404

    r = auth_client.delete(f"/api/grupos/{group_a}/produtos/{pid}")
    assert r.status_code == 200
    assert r.json()["group_id"] is None


def test_link_to_missing_group_is_404(auth_client):
    pid = auth_client.post("/api/produtos", json={"name": "Suco", "price": 8}).json()["id"]

    r = auth_client.put(f"/api/grupos/999/produtos/{pid}")
    assert r.status_code == 404
    assert r.json()["detail"] == "Grupo não encontrado"
    assert auth_client.get("/api/produtos").json()[0]["group_id"] is None


def test_negative_promotion_prices_are_rejected(auth_client):
    r = auth_client.post("/api/promocoes", json={
        "name": "Combo", "items": [{"product_name": "A", "adjusted_price": -50}],
    })
    assert r.status_code == 422

    r = auth_client.post("/api/promocoes/rascunho/salvar", json={
        "name": "Combo", "items": [{"product_name": "A", "price": -50, "quantity": 1}],
    })
    assert r.status_code == 400
    assert auth_client.get("/api/promocoes").json() == []
