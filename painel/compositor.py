# painel/compositor.py
"""
Compositor de promoções.

Monta a lista de itens de uma promoção: item a item a partir do catálogo,
ou todos os produtos de um grupo de uma vez. O envio grava a lista inteira
pelo serviço de promoções (que substitui os itens já gravados).
"""
from typing import Dict, List, Optional

from .errors import ComposerError
from .produtos import GroupService, ProductService
from .promocoes import PromotionService
from .schemas import DraftItem, DraftOverride, Group, Product, Promotion, PromotionIn, PromotionItem


def _check_price(price: Optional[float], product_name: str) -> None:
    if price is not None and price < 0:
        raise ComposerError(f"Preço inválido para {product_name}.")


class PromotionComposer:
    def __init__(
        self,
        products: ProductService,
        groups: GroupService,
        promotions: PromotionService,
        promotion: Optional[Promotion] = None,
    ):
        self.product_service = products
        self.group_service = groups
        self.promotion_service = promotions

        self.promotion_id: Optional[int] = promotion.id if promotion else None
        self.name = promotion.name if promotion else ""
        self.description = (promotion.description or "") if promotion else ""
        self.validity = (promotion.validity or "") if promotion else ""
        self.fixed_total: Optional[float] = promotion.fixed_total if promotion else None
        self.items: List[DraftItem] = [
            DraftItem(product_name=i.product_name, price=i.adjusted_price, quantity=i.quantity)
            for i in (promotion.items if promotion else [])
        ]

        self.catalog: Optional[List[Product]] = None
        self.groups: List[Group] = []
        self.group_id: Optional[int] = None
        self.overrides: Dict[str, DraftOverride] = {}

    # ------------------------------------------------------------------ catálogo
    def load(self) -> None:
        self.catalog = self.product_service.list_products()
        self.groups = self.group_service.list_groups()

    def _require_catalog(self) -> List[Product]:
        if self.catalog is None:
            raise ComposerError("Catálogo de produtos ainda não carregado.")
        return self.catalog

    def select_group(self, group_id: Optional[int]) -> List[Product]:
        self._require_catalog()
        if group_id is not None and group_id not in {g.id for g in self.groups}:
            raise ComposerError("Grupo não encontrado.")
        self.group_id = group_id
        return self.visible_products()

    def visible_products(self) -> List[Product]:
        catalog = self._require_catalog()
        if self.group_id is None:
            return list(catalog)
        return [p for p in catalog if p.group_id == self.group_id]

    def _names(self) -> set:
        return {i.product_name for i in self.items}

    # ------------------------------------------------------------------ edição
    def add_item(self, product_name: str, price: Optional[float] = None, quantity: int = 1) -> DraftItem:
        catalog = self._require_catalog()
        name = (product_name or "").strip()
        if not name:
            raise ComposerError("Informe o produto.")

        # duplicidade só é checada dentro do grupo exibido
        visible = {p.name: p for p in self.visible_products()}
        if name in visible and name in self._names():
            raise ComposerError(f"{name} já está na promoção.")

        product = visible.get(name) or next((p for p in catalog if p.name == name), None)
        if price is None:
            if product is None:
                raise ComposerError(f"Informe o preço de {name}.")
            price = product.price
        _check_price(price, name)

        item = DraftItem(product_name=name, price=price, quantity=quantity)
        self.items.append(item)
        return item

    def set_override(self, product_name: str, price: Optional[float] = None, quantity: Optional[int] = None) -> None:
        """Valores digitados na linha do produto antes de adicionar o grupo."""
        _check_price(price, product_name)
        self.overrides[product_name] = DraftOverride(price=price, quantity=quantity)

    def add_group(self, group_id: Optional[int] = None) -> List[DraftItem]:
        catalog = self._require_catalog()
        gid = group_id if group_id is not None else self.group_id
        if gid is None:
            raise ComposerError("Selecione um grupo.")
        if gid not in {g.id for g in self.groups}:
            raise ComposerError("Grupo não encontrado.")

        present = self._names()
        added = []
        for product in catalog:
            if product.group_id != gid or product.name in present:
                continue
            override = self.overrides.pop(product.name, None) or DraftOverride()
            _check_price(override.price, product.name)
            item = DraftItem(
                product_name=product.name,
                price=product.price if override.price is None else override.price,
                quantity=1 if override.quantity is None else override.quantity,
            )
            self.items.append(item)
            present.add(product.name)
            added.append(item)

        self.items.sort(key=lambda i: i.product_name.casefold())
        return added

    def remove_item(self, index: int) -> None:
        self._item(index)
        del self.items[index]

    def update_item(self, index: int, price: Optional[float] = None, quantity: Optional[float] = None) -> DraftItem:
        item = self._item(index)
        if price is not None:
            _check_price(price, item.product_name)
            item.price = price
        if quantity is not None:
            item.quantity = quantity
        return item

    def _item(self, index: int) -> DraftItem:
        if not 0 <= index < len(self.items):
            raise ComposerError("Item inexistente na promoção.")
        return self.items[index]

    # ------------------------------------------------------------------ envio
    def to_payload(self) -> PromotionIn:
        if not (self.name or "").strip():
            raise ComposerError("Informe o nome da promoção.")
        if self.fixed_total is not None and self.fixed_total < 0:
            raise ComposerError("Valor total inválido.")

        items = []
        for draft in self.items:
            name = (draft.product_name or "").strip()
            if not name:
                raise ComposerError("Informe o produto de todos os itens.")
            quantity = int(draft.quantity or 0)
            if quantity < 1:
                raise ComposerError(f"Quantidade inválida para {name}.")
            price = None if draft.price is None else float(draft.price)
            _check_price(price, name)
            items.append(PromotionItem(product_name=name, adjusted_price=price, quantity=quantity))

        return PromotionIn(
            name=self.name.strip(),
            description=self.description,
            validity=self.validity,
            fixed_total=self.fixed_total,
            items=items,
        )

    def submit(self) -> Promotion:
        payload = self.to_payload()
        if self.promotion_id:
            promotion = self.promotion_service.update_promotion(self.promotion_id, payload)
        else:
            promotion = self.promotion_service.create_promotion(payload)
            self.promotion_id = promotion.id
        return promotion
