"""
Schemas (Pydantic v2) do painel.

Formato da aplicação: nomes em inglês. Os serviços traduzem de/para as
colunas das tabelas remotas (português).
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field


class OrderStatus(str, Enum):
    NEW = "Novo"
    PREPARING = "Em preparo"
    DELIVERING = "Em entrega"
    DONE = "Finalizado"


class PaymentMethod(str, Enum):
    CASH = "Dinheiro"
    CARD = "Cartão"
    PIX = "PIX"


# -----------------------------------------------------------------------------
# Pedidos
# -----------------------------------------------------------------------------
class OrderItem(BaseModel):
    kind: str = Field("produto", pattern="^(produto|promocao)$")
    name: str
    unit_price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    promotion_id: Optional[int] = None


class OrderIn(BaseModel):
    customer_name: str = ""
    delivery_address: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""
    items: List[OrderItem] = []


class Order(BaseModel):
    id: int
    customer_name: Optional[str] = None
    delivery_address: Optional[str] = None
    payment_method: str
    notes: Optional[str] = None
    status: str
    total: float
    items: List[OrderItem] = []
    created_at: Optional[datetime] = None


class BoardOut(BaseModel):
    new: List[Order]
    preparing: List[Order]
    delivering: List[Order]


# -----------------------------------------------------------------------------
# Produtos e grupos
# -----------------------------------------------------------------------------
class GroupIn(BaseModel):
    name: str = Field(..., max_length=120)


class Group(GroupIn):
    id: int


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    price: float = Field(..., ge=0)
    image_url: Optional[str] = ""
    available: bool = True
    group_id: Optional[int] = None


class Product(ProductIn):
    id: int
    group_name: Optional[str] = None


# -----------------------------------------------------------------------------
# Promoções
# -----------------------------------------------------------------------------
class PromotionItem(BaseModel):
    product_name: str = Field(..., min_length=1)
    adjusted_price: Optional[float] = Field(None, ge=0)
    quantity: int = Field(1, ge=1)


class PromotionIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = ""
    validity: Optional[str] = ""
    fixed_total: Optional[float] = Field(None, ge=0)
    items: List[PromotionItem] = []


class Promotion(PromotionIn):
    id: int
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def effective_price(self) -> float:
        if self.fixed_total is not None:
            return self.fixed_total
        return round(sum((i.adjusted_price or 0.0) * i.quantity for i in self.items), 2)


class DraftItem(BaseModel):
    """Linha do rascunho do compositor (valores ainda como digitados)."""
    product_name: str = ""
    price: Optional[float] = None
    quantity: Optional[float] = None


class DraftOverride(BaseModel):
    price: Optional[float] = None
    quantity: Optional[int] = None


class DraftIn(BaseModel):
    id: Optional[int] = None
    items: List[DraftItem] = []
    group_id: Optional[int] = None
    overrides: Dict[str, DraftOverride] = {}


class DraftAddIn(DraftIn):
    product_name: str
    price: Optional[float] = None
    quantity: int = 1


# -----------------------------------------------------------------------------
# Configurações
# -----------------------------------------------------------------------------
class Integrations(BaseModel):
    whatsapp: bool = False
    payment_gateway: bool = False


class StoreSettings(BaseModel):
    store_name: str = ""
    logo_url: str = ""
    opening_time: str = Field("18:00", pattern=r"^\d{2}:\d{2}$")
    closing_time: str = Field("23:00", pattern=r"^\d{2}:\d{2}$")
    integrations: Integrations = Integrations()
    updated_at: Optional[datetime] = None


# -----------------------------------------------------------------------------
# Finanças
# -----------------------------------------------------------------------------
class Transaction(BaseModel):
    id: int
    value: float
    payment_method: Optional[str] = None
    status: str
    date: str


class FinanceSummary(BaseModel):
    total_sales: float
    order_count: int
    average_ticket: float


class FinanceOut(BaseModel):
    transactions: List[Transaction]
    summary: FinanceSummary


# -----------------------------------------------------------------------------
# Sessão
# -----------------------------------------------------------------------------
class LoginIn(BaseModel):
    email: str
    password: str


class SessionUser(BaseModel):
    id: str
    email: str
