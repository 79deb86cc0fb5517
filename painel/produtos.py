# painel/produtos.py
"""Serviços de grupos e produtos (tabelas ``grupos`` e ``produtos``)."""
import logging
from typing import Any, Dict, List, Optional

from .errors import FormError, NotFound
from .gateway import Gateway, Row
from .schemas import Group, Product, ProductIn
from .utils import backend_call, to_float

logger = logging.getLogger(__name__)

GROUPS = "grupos"
PRODUCTS = "produtos"
NO_GROUP = "Sem Grupo"


# -----------------------------------------------------------------------------
# Grupos
# -----------------------------------------------------------------------------
def group_from_wire(row: Row) -> Group:
    return Group(id=row["id"], name=row["nome"])


class GroupService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def list_groups(self) -> List[Group]:
        with backend_call(logger, "Erro ao buscar grupos", "Erro ao carregar grupos."):
            rows = self.gw.table(GROUPS).select("id", "nome").order("nome").execute()
        return [group_from_wire(r) for r in rows]

    def get_group(self, group_id: int) -> Group:
        with backend_call(logger, "Erro ao buscar grupo", "Erro ao carregar o grupo."):
            row = self.gw.table(GROUPS).select("id", "nome").eq("id", group_id).single()
        if row is None:
            raise NotFound("Grupo não encontrado")
        return group_from_wire(row)

    def create_group(self, name: str) -> Group:
        name = _group_name(name)
        with backend_call(logger, "Erro ao adicionar grupo", "Erro ao adicionar grupo."):
            rows = self.gw.table(GROUPS).insert({"nome": name})
        return group_from_wire(rows[0])

    def update_group(self, group_id: int, name: str) -> Group:
        name = _group_name(name)
        with backend_call(logger, "Erro ao atualizar grupo", "Erro ao atualizar grupo."):
            rows = self.gw.table(GROUPS).eq("id", group_id).update({"nome": name})
        if not rows:
            raise NotFound("Grupo não encontrado")
        return group_from_wire(rows[0])

    def delete_group(self, group_id: int) -> None:
        # produtos do grupo ficam desvinculados (ON DELETE SET NULL)
        with backend_call(logger, "Erro ao deletar grupo", "Erro ao excluir grupo."):
            deleted = self.gw.table(GROUPS).eq("id", group_id).delete()
        if not deleted:
            raise NotFound("Grupo não encontrado")


def _group_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise FormError("Informe o nome do grupo.")
    return name


# -----------------------------------------------------------------------------
# Produtos
# -----------------------------------------------------------------------------
def product_to_wire(payload: ProductIn) -> Dict[str, Any]:
    return {
        "nome": payload.name.strip(),
        "descricao": payload.description or "",
        "preco": payload.price,
        "imagem_url": payload.image_url or "",
        "disponivel": payload.available,
        "grupo_id": payload.group_id,
    }


def product_from_wire(row: Row) -> Product:
    group_name: Optional[str] = None
    if GROUPS in row:
        group_name = (row[GROUPS] or {}).get("nome") or NO_GROUP
    return Product(
        id=row["id"],
        name=row["nome"],
        description=row.get("descricao") or "",
        price=to_float(row.get("preco")),
        image_url=row.get("imagem_url") or "",
        available=bool(row.get("disponivel", True)),
        group_id=row.get("grupo_id"),
        group_name=group_name,
    )


class ProductService:
    def __init__(self, gateway: Gateway):
        self.gw = gateway

    def list_products(self) -> List[Product]:
        with backend_call(logger, "Erro ao buscar produtos", "Erro ao carregar produtos."):
            rows = (
                self.gw.table(PRODUCTS)
                .select("*", embed=(GROUPS, ["nome"]))
                .order("nome")
                .execute()
            )
        return [product_from_wire(r) for r in rows]

    def list_products_by_group(self, group_id: int) -> List[Product]:
        with backend_call(logger, "Erro ao buscar produtos por grupo", "Erro ao carregar produtos do grupo."):
            rows = (
                self.gw.table(PRODUCTS)
                .select("*", embed=(GROUPS, ["nome"]))
                .eq("grupo_id", group_id)
                .order("nome")
                .execute()
            )
        return [product_from_wire(r) for r in rows]

    def get_product(self, product_id: int) -> Product:
        with backend_call(logger, "Erro ao buscar produto", "Erro ao carregar o produto."):
            row = (
                self.gw.table(PRODUCTS)
                .select("*", embed=(GROUPS, ["nome"]))
                .eq("id", product_id)
                .single()
            )
        if row is None:
            raise NotFound("Produto não encontrado")
        return product_from_wire(row)

    def create_product(self, payload: ProductIn) -> Product:
        with backend_call(logger, "Erro ao adicionar produto", "Erro ao adicionar produto."):
            rows = self.gw.table(PRODUCTS).insert(product_to_wire(payload))
        return product_from_wire(rows[0])

    def update_product(self, product_id: int, payload: ProductIn) -> Product:
        with backend_call(logger, "Erro ao atualizar produto", "Falha ao atualizar o produto."):
            rows = self.gw.table(PRODUCTS).eq("id", product_id).update(product_to_wire(payload))
        if not rows:
            raise NotFound("Produto não encontrado")
        return product_from_wire(rows[0])

    def delete_product(self, product_id: int) -> None:
        with backend_call(logger, "Erro ao deletar produto", "Erro ao excluir produto."):
            deleted = self.gw.table(PRODUCTS).eq("id", product_id).delete()
        if not deleted:
            raise NotFound("Produto não encontrado")

    def link_product(self, product_id: int, group_id: Optional[int]) -> Product:
        """Vincula o produto ao grupo (ou desvincula com ``None``)."""
        with backend_call(logger, "Erro ao vincular produto", "Erro ao atualizar o grupo do produto."):
            rows = self.gw.table(PRODUCTS).eq("id", product_id).update({"grupo_id": group_id})
        if not rows:
            raise NotFound("Produto não encontrado")
        return product_from_wire(rows[0])

    def unlink_product(self, product_id: int) -> Product:
        return self.link_product(product_id, None)
