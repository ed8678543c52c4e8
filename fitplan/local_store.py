"""SQLAlchemy-backed :class:`DataStore` for local development.

Every logical table lives in one physical table of JSON rows, so no schema
migration is needed to try the pipeline against SQLite.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .errors import StoreError
from .store import DataStore

Base = declarative_base()


class StoredRow(Base):
    __tablename__ = "fitplan_rows"
    id = Column(Integer, primary_key=True)
    table_name = Column(String(100), nullable=False, index=True)
    row_json = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class LocalStore(DataStore):
    def __init__(self, db_url: str = "sqlite:///fitplan.db") -> None:
        self.engine = create_engine(db_url, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)
        Base.metadata.create_all(bind=self.engine)

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        db = self.SessionLocal()
        try:
            for row in rows:
                db.add(StoredRow(table_name=table, row_json=json.dumps(row, ensure_ascii=False, default=str)))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError(f"Local insert failed for {table}: {exc}", body=str(exc)) from exc
        finally:
            db.close()
        return [dict(r) for r in rows]

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        db = self.SessionLocal()
        try:
            items = (
                db.query(StoredRow)
                .filter(StoredRow.table_name == table)
                .order_by(StoredRow.id.asc())
                .all()
            )
            rows = [json.loads(r.row_json) for r in items]
        except SQLAlchemyError as exc:
            raise StoreError(f"Local select failed for {table}: {exc}", body=str(exc)) from exc
        finally:
            db.close()
        return [r for r in rows if _matches(r, filters)]

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        db = self.SessionLocal()
        try:
            items = db.query(StoredRow).filter(StoredRow.table_name == table).all()
            doomed = [r for r in items if _matches(json.loads(r.row_json), filters)]
            for r in doomed:
                db.delete(r)
            db.commit()
            return len(doomed)
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError(f"Local delete failed for {table}: {exc}", body=str(exc)) from exc
        finally:
            db.close()
