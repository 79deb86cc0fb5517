# painel/main.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, Depends, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import config
from .auth import AuthGate, get_auth_gate, require_session
from .compositor import PromotionComposer
from .configuracoes import SettingsService
from .database import Base, engine, get_db
from .errors import FormError, NotFound, PainelError
from .financas import REPORT_FILENAME, FinanceReporter, FinanceService
from .gateway import Gateway
from .pedidos import OrderService
from .produtos import GroupService, ProductService
from .promocoes import PromotionService
from .quadro import OrderBoard, OrderDraft, load_order_catalog
from .schemas import (
    BoardOut,
    DraftAddIn,
    DraftIn,
    DraftItem,
    FinanceOut,
    Group,
    GroupIn,
    LoginIn,
    Order,
    OrderIn,
    OrderItem,
    Product,
    ProductIn,
    Promotion,
    PromotionIn,
    SessionUser,
    StoreSettings,
)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# App + CORS
# -----------------------------------------------------------------------------
app = FastAPI(title="Painel Orla33")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Pastas (caminhos absolutos) e estáticos
# -----------------------------------------------------------------------------
PAINEL_DIR = Path(__file__).resolve().parent
FRONTEND_DIR = PAINEL_DIR.parent / "frontend"

if FRONTEND_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(FRONTEND_DIR)), name="static")

# -----------------------------------------------------------------------------
# DB: cria tabelas (se não existirem)
# -----------------------------------------------------------------------------
Base.metadata.create_all(bind=engine)


# -----------------------------------------------------------------------------
# Erros -> mesmo formato do HTTPException
# -----------------------------------------------------------------------------
@app.exception_handler(PainelError)
async def painel_error_handler(request: Request, exc: PainelError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def get_gateway(db: Session = Depends(get_db)) -> Gateway:
    return Gateway(db)


def _file_or_404(path: Path) -> FileResponse:
    if not path.exists():
        raise NotFound("Página não encontrada")
    return FileResponse(str(path))


def _board(gw: Gateway) -> OrderBoard:
    board = OrderBoard(OrderService(gw))
    board.load()
    return board


def _composer(gw: Gateway, draft: DraftIn) -> PromotionComposer:
    promotions = PromotionService(gw)
    promotion = promotions.get_promotion(draft.id) if draft.id else None
    composer = PromotionComposer(ProductService(gw), GroupService(gw), promotions, promotion)
    composer.load()
    composer.items = [item.model_copy() for item in draft.items]
    composer.overrides = dict(draft.overrides)
    if draft.group_id is not None:
        composer.select_group(draft.group_id)
    return composer


# -----------------------------------------------------------------------------
# Auth (fictício)
# -----------------------------------------------------------------------------
@app.post("/api/auth/login", response_model=SessionUser)
async def login(payload: LoginIn, response: Response, gate: AuthGate = Depends(get_auth_gate)):
    user = await gate.sign_in(payload.email, payload.password)
    gate.storage.apply(response)
    return user


@app.post("/api/auth/logout")
def logout(response: Response, gate: AuthGate = Depends(get_auth_gate)):
    gate.sign_out()
    gate.storage.apply(response)
    return {"ok": True}


@app.get("/api/auth/me", response_model=SessionUser)
def me(current: SessionUser = Depends(require_session)):
    return current


# -----------------------------------------------------------------------------
# Pedidos (quadro)
# -----------------------------------------------------------------------------
class DraftOrderIn(BaseModel):
    items: List[OrderItem] = []
    kind: str
    item_id: int


class DraftOrderOut(BaseModel):
    items: List[OrderItem]
    total: float


class CatalogOut(BaseModel):
    products: List[Product]
    groups: List[Group]
    promotions: List[Promotion]


@app.get("/api/pedidos", response_model=List[Order])
def list_orders(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return _board(gw).orders


@app.get("/api/pedidos/quadro", response_model=BoardOut)
def order_board(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return _board(gw).columns()


@app.post("/api/pedidos", response_model=Order, status_code=201)
def create_order(payload: OrderIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    # pedido novo entra no topo; não precisa recarregar o quadro
    return OrderBoard(OrderService(gw)).create(payload)


@app.post("/api/pedidos/{oid}/avancar", response_model=Order)
def advance_order(oid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return _board(gw).advance(oid)


@app.delete("/api/pedidos/{oid}")
def decline_order(
    oid: int,
    confirmar: bool = False,
    _: SessionUser = Depends(require_session),
    gw: Gateway = Depends(get_gateway),
):
    if not _board(gw).decline(oid, confirm=lambda _prompt: confirmar):
        raise FormError("Confirme a recusa do pedido.")
    return {"ok": True}


@app.get("/api/pedidos/catalogo", response_model=CatalogOut)
def order_catalog(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return load_order_catalog(gw)._asdict()


@app.post("/api/pedidos/rascunho/item", response_model=DraftOrderOut)
def add_order_item(payload: DraftOrderIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    draft = OrderDraft(load_order_catalog(gw), payload.items)
    draft.add(payload.kind, payload.item_id)
    return {"items": draft.items, "total": draft.total()}


# -----------------------------------------------------------------------------
# Grupos
# -----------------------------------------------------------------------------
@app.get("/api/grupos", response_model=List[Group])
def list_groups(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return GroupService(gw).list_groups()


@app.post("/api/grupos", response_model=Group, status_code=201)
def create_group(payload: GroupIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return GroupService(gw).create_group(payload.name)


@app.put("/api/grupos/{gid}", response_model=Group)
def update_group(gid: int, payload: GroupIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return GroupService(gw).update_group(gid, payload.name)


@app.delete("/api/grupos/{gid}")
def delete_group(gid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    GroupService(gw).delete_group(gid)
    return {"ok": True}


@app.get("/api/grupos/{gid}/produtos", response_model=List[Product])
def list_group_products(gid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    GroupService(gw).get_group(gid)
    return ProductService(gw).list_products_by_group(gid)


@app.put("/api/grupos/{gid}/produtos/{pid}", response_model=Product)
def link_product(gid: int, pid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    GroupService(gw).get_group(gid)
    return ProductService(gw).link_product(pid, gid)


@app.delete("/api/grupos/{gid}/produtos/{pid}", response_model=Product)
def unlink_product(gid: int, pid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    products = ProductService(gw)
    if products.get_product(pid).group_id != gid:
        raise NotFound("Produto não pertence a este grupo")
    return products.unlink_product(pid)


# -----------------------------------------------------------------------------
# Produtos
# -----------------------------------------------------------------------------
@app.get("/api/produtos", response_model=List[Product])
def list_products(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return ProductService(gw).list_products()


@app.post("/api/produtos", response_model=Product, status_code=201)
def create_product(payload: ProductIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return ProductService(gw).create_product(payload)


@app.put("/api/produtos/{pid}", response_model=Product)
def update_product(pid: int, payload: ProductIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return ProductService(gw).update_product(pid, payload)


@app.delete("/api/produtos/{pid}")
def delete_product(pid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    ProductService(gw).delete_product(pid)
    return {"ok": True}


# -----------------------------------------------------------------------------
# Promoções
# -----------------------------------------------------------------------------
class DraftSaveIn(DraftIn):
    name: str
    description: Optional[str] = ""
    validity: Optional[str] = ""
    fixed_total: Optional[float] = None


@app.get("/api/promocoes", response_model=List[Promotion])
def list_promotions(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return PromotionService(gw).list_promotions()


@app.post("/api/promocoes", response_model=Promotion, status_code=201)
def create_promotion(payload: PromotionIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return PromotionService(gw).create_promotion(payload)


@app.put("/api/promocoes/{pid}", response_model=Promotion)
def update_promotion(pid: int, payload: PromotionIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return PromotionService(gw).update_promotion(pid, payload)


@app.delete("/api/promocoes/{pid}")
def delete_promotion(pid: int, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    PromotionService(gw).delete_promotion(pid)
    return {"ok": True}


@app.post("/api/promocoes/rascunho/item", response_model=List[DraftItem])
def draft_add_item(payload: DraftAddIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    composer = _composer(gw, payload)
    composer.add_item(payload.product_name, payload.price, payload.quantity)
    return composer.items


@app.post("/api/promocoes/rascunho/grupo", response_model=List[DraftItem])
def draft_add_group(payload: DraftIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    composer = _composer(gw, payload)
    composer.add_group()
    return composer.items


@app.post("/api/promocoes/rascunho/salvar", response_model=Promotion)
def draft_save(payload: DraftSaveIn, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    composer = _composer(gw, payload)
    composer.name = payload.name
    composer.description = payload.description or ""
    composer.validity = payload.validity or ""
    composer.fixed_total = payload.fixed_total
    return composer.submit()


# -----------------------------------------------------------------------------
# Finanças
# -----------------------------------------------------------------------------
def _reporter(gw: Gateway, data: Optional[str], pagamento: Optional[str]) -> FinanceReporter:
    reporter = FinanceReporter(FinanceService(gw))
    reporter.load()
    reporter.apply_filters(data, pagamento)
    return reporter


@app.get("/api/financas", response_model=FinanceOut)
def finance(
    data: Optional[str] = None,
    pagamento: Optional[str] = None,
    _: SessionUser = Depends(require_session),
    gw: Gateway = Depends(get_gateway),
):
    reporter = _reporter(gw, data, pagamento)
    return {"transactions": reporter.filtered, "summary": reporter.summary()}


@app.get("/api/financas/relatorio", response_class=PlainTextResponse)
def finance_report(
    data: Optional[str] = None,
    pagamento: Optional[str] = None,
    _: SessionUser = Depends(require_session),
    gw: Gateway = Depends(get_gateway),
):
    reporter = _reporter(gw, data, pagamento)
    return PlainTextResponse(
        reporter.export_text(),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"'},
    )


# -----------------------------------------------------------------------------
# Configurações
# -----------------------------------------------------------------------------
@app.get("/api/configuracoes", response_model=StoreSettings)
def get_settings(_: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return SettingsService(gw).get_settings()


@app.put("/api/configuracoes", response_model=StoreSettings)
def save_settings(payload: StoreSettings, _: SessionUser = Depends(require_session), gw: Gateway = Depends(get_gateway)):
    return SettingsService(gw).save_settings(payload)


# -----------------------------------------------------------------------------
# Saúde
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"ok": True}


# -----------------------------------------------------------------------------
# Páginas (HTML) - sem sessão cai na tela de login
# -----------------------------------------------------------------------------
def _page(gate: AuthGate) -> FileResponse:
    if not gate.is_authenticated:
        return _file_or_404(FRONTEND_DIR / "login.html")
    return _file_or_404(FRONTEND_DIR / "index.html")


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
@app.get("/login", response_class=HTMLResponse, include_in_schema=False)
@app.get("/pedidos", response_class=HTMLResponse, include_in_schema=False)
@app.get("/produtos", response_class=HTMLResponse, include_in_schema=False)
@app.get("/produtos/grupos", response_class=HTMLResponse, include_in_schema=False)
@app.get("/promocoes", response_class=HTMLResponse, include_in_schema=False)
@app.get("/financas", response_class=HTMLResponse, include_in_schema=False)
@app.get("/configuracoes", response_class=HTMLResponse, include_in_schema=False)
def panel_page(gate: AuthGate = Depends(get_auth_gate)):
    return _page(gate)


@app.get("/produtos/grupos/{gid}", response_class=HTMLResponse, include_in_schema=False)
def group_page(gid: int, gate: AuthGate = Depends(get_auth_gate)):
    return _page(gate)
