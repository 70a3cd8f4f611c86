"""Supplier-specific names that resolve to products."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .db import NotFoundError, Querier, _errors

_TABLE = "product_aliases"
_KIND = "supplier_article"
_COLUMNS = "id, product_id, supplier_name, alias_type, alias_value, created_at"


@dataclass
class ProductAlias:
    id: int
    product_id: int
    supplier_name: str
    alias_type: str
    alias_value: str
    created_at: datetime


class ProductAliasRepository:
    """Reads and writes supplier article aliases of products."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def get_by_supplier_article(self, supplier_name: str, article: str) -> ProductAlias:
        """Find the alias a supplier uses for an article, ignoring letter case."""
        sql = (
            f"SELECT {_COLUMNS} FROM {_TABLE}"
            f" WHERE LOWER(supplier_name) = LOWER($1) AND alias_type = '{_KIND}'"
            " AND LOWER(alias_value) = LOWER($2) LIMIT 1"
        )
        with _errors("get product alias"):
            row = self._db.query_row(sql, supplier_name, article)
        if row is None:
            raise NotFoundError()
        return ProductAlias(*row)

    def upsert_supplier_article(self, product_id: int, supplier_name: str, article: str) -> ProductAlias:
        """Point a supplier's article at a product, creating the alias if needed."""
        sql = (
            f"INSERT INTO {_TABLE} (product_id, supplier_name, alias_type, alias_value)"
            f" VALUES ($1, $2, '{_KIND}', $3)"
            " ON CONFLICT (supplier_name, alias_type, alias_value)"
            " DO UPDATE SET product_id = EXCLUDED.product_id"
            f" RETURNING {_COLUMNS}"
        )
        with _errors("upsert product alias"):
            row = self._db.query_row(sql, product_id, supplier_name, article)
            if row is None:
                raise RuntimeError("no row returned")
        return ProductAlias(*row)