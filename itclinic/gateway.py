# itclinic/gateway.py

import logging
from contextlib import contextmanager
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models
from .errors import BackendError, UniqueViolation

logger = logging.getLogger(__name__)

TABLES = {
    "profiles": models.Profile,
    "services": models.Service,
    "products": models.Product,
    "reservations": models.Reservation,
    "testimonials": models.Testimonial,
    "consultations": models.Consultation,
}

Filters = Mapping[str, Any]
Ranges = Mapping[str, Tuple[Any, Any]]


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23505":
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate key" in message


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DataGateway:
    def __init__(self, db: Session):
        self.db = db

    # --- helpers ---

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    @contextmanager
    def _backend(self, action: str, table: str):
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            if is_unique_violation(exc):
                logger.info("Duplicate key on %s %s", action, table)
                raise UniqueViolation(f"Duplicate key on {table}") from exc
            logger.error("Integrity failure on %s %s: %s", action, table, exc.orig)
            raise BackendError(f"Could not {action} {table}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Backend failure on %s %s: %s", action, table, exc)
            raise BackendError(f"Could not {action} {table}") from exc

    def _column(self, model, name: str):
        col = getattr(model, name, None)
        if col is None:
            raise ValueError(f"Unknown column {model.__tablename__}.{name}")
        return col

    def _where(self, stmt, model, filters: Optional[Filters], ranges: Optional[Ranges]):
        for name, value in (filters or {}).items():
            col = self._column(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(col.in_(list(value)))
            elif value is None:
                stmt = stmt.where(col.is_(None))
            else:
                stmt = stmt.where(col == value)
        for name, (low, high) in (ranges or {}).items():
            col = self._column(model, name)
            if low is not None:
                stmt = stmt.where(col >= low)
            if high is not None:
                stmt = stmt.where(col <= high)
        return stmt

    def _search(self, stmt, model, text: str, columns: Sequence[str]):
        pattern = f"%{_escape_like(text)}%"
        joined = set()
        clauses = []
        for path in columns:
            if "." in path:
                rel_name, col_name = path.split(".", 1)
                rel = self._column(model, rel_name)
                target = rel.property.mapper.class_
                if rel_name not in joined:
                    stmt = stmt.outerjoin(rel)
                    joined.add(rel_name)
                col = self._column(target, col_name)
            else:
                col = self._column(model, path)
            clauses.append(col.ilike(pattern, escape="\\"))
        return stmt.where(or_(*clauses))

    def _order(self, stmt, model, order: Iterable[str]):
        for key in order:
            if key.startswith("-"):
                stmt = stmt.order_by(self._column(model, key[1:]).desc())
            else:
                stmt = stmt.order_by(self._column(model, key).asc())
        return stmt

    # --- queries ---

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Iterable[str] = (),
        limit: Optional[int] = None,
        expand: Sequence[str] = (),
        search: Optional[Tuple[str, Sequence[str]]] = None,
        ranges: Optional[Ranges] = None,
    ) -> List[Any]:
        """Rows of ``table`` matching every filter.

        ``order`` takes column names, prefixed with ``-`` for descending.
        ``search`` is ``(text, columns)``; columns may name a related
        column as ``relation.column``. ``expand`` eager-loads relations.
        """
        model = self._model(table)
        stmt = select(model)
        stmt = self._where(stmt, model, filters, ranges)
        if search and search[0]:
            stmt = self._search(stmt, model, search[0], search[1])
        stmt = self._order(stmt, model, order)
        for rel in expand:
            stmt = stmt.options(selectinload(self._column(model, rel)))
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._backend("read", table):
            return list(self.db.execute(stmt).scalars().all())

    def select_one(self, table: str, filters: Filters, expand: Sequence[str] = ()) -> Optional[Any]:
        rows = self.select(table, filters=filters, expand=expand, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Optional[Filters] = None, ranges: Optional[Ranges] = None) -> int:
        model = self._model(table)
        stmt = self._where(select(func.count()).select_from(model), model, filters, ranges)
        with self._backend("count", table):
            return int(self.db.execute(stmt).scalar_one())

    def exists(self, table: str, filters: Filters) -> bool:
        return self.count(table, filters) > 0

    # --- writes ---

    def insert(self, table: str, values: Mapping[str, Any]) -> Any:
        model = self._model(table)
        row = model(**dict(values))
        with self._backend("insert", table):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row

    def update(self, table: str, filters: Filters, values: Mapping[str, Any]) -> List[Any]:
        """Apply ``values`` to every matching row in one commit; returns the rows."""
        model = self._model(table)
        stmt = self._where(select(model), model, filters, None)
        with self._backend("update", table):
            rows = list(self.db.execute(stmt).scalars().all())
            for row in rows:
                for key, value in values.items():
                    self._column(model, key)
                    setattr(row, key, value)
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
        return rows

    def delete(self, table: str, filters: Filters) -> int:
        model = self._model(table)
        stmt = self._where(select(model), model, filters, None)
        with self._backend("delete", table):
            rows = list(self.db.execute(stmt).scalars().all())
            for row in rows:
                self.db.delete(row)
            self.db.commit()
        return len(rows)
