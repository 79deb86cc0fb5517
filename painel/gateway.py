# painel/gateway.py
"""
Cliente genérico das tabelas remotas.

Imita a superfície de consulta do banco hospedado: ``select`` com filtro,
ordem e limite, ``insert``, ``update``, ``delete``, ``upsert`` e embutir
relações pelos ``relationship`` dos modelos (produto -> grupo, promoção ->
itens). Cada chamada é uma unidade de trabalho própria (commit por chamada),
como uma requisição HTTP isolada.

    gw = Gateway(db)
    gw.table("produtos").select("*", embed=("grupos", ["nome"])).eq("grupo_id", 3).order("nome").execute()
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapper, RelationshipProperty, Session, object_mapper, selectinload

from . import models  # registra as tabelas em Base.metadata
from .database import Base
from .errors import GatewayError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _table(name: str) -> Table:
    tbl = Base.metadata.tables.get(name)
    if tbl is None:
        raise GatewayError(f"Tabela desconhecida: {name}")
    return tbl


def _column_of(table: Table, name: str):
    if name not in table.c:
        raise GatewayError(f"Coluna desconhecida: {table.name}.{name}")
    return table.c[name]


def _mapper(table: Table) -> Mapper:
    for mapper in Base.registry.mappers:
        if mapper.local_table is table:
            return mapper
    raise GatewayError(f"Tabela sem modelo: {table.name}")


def _relationship(mapper: Mapper, target: Table) -> RelationshipProperty:
    for rel in mapper.relationships:
        if rel.mapper.local_table is target:
            return rel
    raise GatewayError(f"Sem relação entre {mapper.local_table.name} e {target.name}")


def _as_row(obj, columns) -> Row:
    mapper = object_mapper(obj)
    return {c.name: getattr(obj, mapper.get_property_by_column(c).key) for c in columns}


class Gateway:
    def __init__(self, db: Session):
        self.db = db

    def table(self, name: str) -> "TableQuery":
        return TableQuery(self.db, _table(name))


class TableQuery:
    def __init__(self, db: Session, table: Table):
        self.db = db
        self.table = table
        self._columns: Optional[list] = None
        self._embed: Optional[tuple] = None
        self._filters: list = []
        self._order: list = []
        self._limit: Optional[int] = None

    # ------------------------------------------------------------------ builder
    def _column(self, name: str):
        return _column_of(self.table, name)

    def select(self, *columns: str, embed: Optional[Sequence] = None) -> "TableQuery":
        names = [c for c in columns if c != "*"]
        self._columns = [self._column(c) for c in names] or None
        self._embed = tuple(embed) if embed else None
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._filters.append(self._column(column) == value)
        return self

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        col = self._column(column)
        self._order.append(col.desc() if desc else col.asc())
        return self

    def limit(self, n: int) -> "TableQuery":
        self._limit = n
        return self

    # ------------------------------------------------------------------ leitura
    def _statement(self, stmt):
        if self._filters:
            stmt = stmt.where(*self._filters)
        if self._order:
            stmt = stmt.order_by(*self._order)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def execute(self) -> List[Row]:
        if self._embed:
            return self._execute_embedded()
        cols = list(self._columns) if self._columns else list(self.table.c)
        stmt = self._statement(select(*cols))
        return self._run(lambda: [dict(r._mapping) for r in self.db.execute(stmt)])

    def single(self) -> Optional[Row]:
        rows = self.limit(2).execute()
        if len(rows) > 1:
            raise GatewayError(f"Mais de uma linha em {self.table.name}")
        return rows[0] if rows else None

    def _execute_embedded(self) -> List[Row]:
        """Muitos-para-um vira dict (ou None); um-para-muitos vira lista."""
        name, columns, alias = (self._embed + (None, None))[:3]
        key = alias or name
        mapper = _mapper(self.table)
        rel = _relationship(mapper, _table(name))

        cols = list(self._columns) if self._columns else list(self.table.c)
        for col in self.table.primary_key.columns:
            if col.name not in {c.name for c in cols}:
                cols.append(col)
        target = rel.mapper.local_table
        target_cols = [_column_of(target, c) for c in columns] if columns else list(target.c)

        stmt = (
            self._statement(select(mapper.class_))
            .options(selectinload(rel.class_attribute))
            .execution_options(populate_existing=True)
        )

        def run():
            rows = []
            for obj in self.db.execute(stmt).scalars():
                row = _as_row(obj, cols)
                related = getattr(obj, rel.key)
                if rel.uselist:
                    row[key] = [_as_row(r, target_cols) for r in related]
                else:
                    row[key] = None if related is None else _as_row(related, target_cols)
                rows.append(row)
            return rows

        return self._run(run)

    # ------------------------------------------------------------------ escrita
    def insert(self, rows: Union[Row, List[Row]]) -> List[Row]:
        if isinstance(rows, dict):
            rows = [rows]
        values_list = [self._clean(r) for r in rows]
        if not values_list:
            return []

        def run():
            out = []
            for values in values_list:
                res = self.db.execute(insert(self.table).values(**values))
                pk = dict(zip((c.name for c in self.table.primary_key.columns), res.inserted_primary_key))
                out.append(self._fetch(pk))
            return out

        return self._run(run, write=True)

    def update(self, values: Row) -> List[Row]:
        values = self._clean(values)
        self._require_filter("update")
        pk_cols = list(self.table.primary_key.columns)

        def run():
            keys = [tuple(k) for k in self.db.execute(select(*pk_cols).where(*self._filters))]
            if values and keys:
                self.db.execute(update(self.table).where(*self._filters).values(**values))
            return [self._fetch(dict(zip((c.name for c in pk_cols), k))) for k in keys]

        return self._run(run, write=True)

    def delete(self) -> int:
        self._require_filter("delete")
        return self._run(
            lambda: self.db.execute(delete(self.table).where(*self._filters)).rowcount,
            write=True,
        )

    def upsert(self, row: Row) -> List[Row]:
        values = self._clean(row)
        pk_cols = list(self.table.primary_key.columns)
        if any(values.get(c.name) is None for c in pk_cols):
            return self.insert(values)
        pk = {c.name: values[c.name] for c in pk_cols}
        where = [c == values[c.name] for c in pk_cols]

        def run():
            exists = self.db.execute(select(*pk_cols).where(*where)).first()
            if exists:
                self.db.execute(update(self.table).where(*where).values(**values))
            else:
                self.db.execute(insert(self.table).values(**values))
            return [self._fetch(pk)]

        return self._run(run, write=True)

    # ------------------------------------------------------------------ helpers
    def _clean(self, values: Row) -> Row:
        unknown = [k for k in values if k not in self.table.c]
        if unknown:
            raise GatewayError(f"Colunas desconhecidas em {self.table.name}: {', '.join(unknown)}")
        return dict(values)

    def _require_filter(self, op: str) -> None:
        if not self._filters:
            raise GatewayError(f"{op} em {self.table.name} exige filtro")

    def _fetch(self, pk: Row) -> Row:
        where = [self.table.c[k] == v for k, v in pk.items()]
        row = self.db.execute(select(*self.table.c).where(*where)).first()
        return dict(row._mapping) if row is not None else dict(pk)

    def _run(self, fn, write: bool = False):
        try:
            result = fn()
            if write:
                self.db.commit()
            return result
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Erro no banco (%s): %s", self.table.name, e)
            raise GatewayError(str(getattr(e, "orig", None) or e)) from e
