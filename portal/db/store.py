import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


class StoreError(Exception):
    """ 저장소 조회/변경 실패 """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RowValidationError(StoreError):
    """ 저장소가 돌려준 행이 스키마와 맞지 않음 """


def _validate(schema: Type[RowT], row: Any, table: str) -> RowT:
    try:
        return schema.model_validate(row)
    except ValidationError as e:
        logger.error(f"[{table}] 행 검증 실패: {e}")
        raise RowValidationError(f"Malformed row in {table}: {e.error_count()} invalid field(s)")


def _query(db: Session, model, filters: Optional[dict]):
    query = db.query(model)
    if filters:
        query = query.filter_by(**filters)
    return query


def fetch_rows(
        db: Session,
        model,
        schema: Type[RowT],
        *,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
) -> list[RowT]:
    table = model.__tablename__
    try:
        query = _query(db, model, filters)
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        rows = query.all()
    except SQLAlchemyError as e:
        logger.error(f"[{table}] 조회 실패: {e}")
        raise StoreError(f"Could not fetch {table}")
    return [_validate(schema, row, table) for row in rows]


def fetch_one(db: Session, model, schema: Type[RowT], *, filters: dict) -> Optional[RowT]:
    """ 단일 행 조회. 없으면 None """
    table = model.__tablename__
    try:
        row = _query(db, model, filters).first()
    except SQLAlchemyError as e:
        logger.error(f"[{table}] 조회 실패: {e}")
        raise StoreError(f"Could not fetch {table}")
    if row is None:
        return None
    return _validate(schema, row, table)


def update_rows(db: Session, model, filters: dict, values: dict) -> int:
    """ 조건에 맞는 행을 갱신하고 영향받은 행 수를 반환 """
    table = model.__tablename__
    try:
        count = _query(db, model, filters).update(values, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[{table}] 갱신 실패: {e}")
        raise StoreError(str(e.__cause__ or e))
    return count


def insert_row(db: Session, model, values: dict):
    table = model.__tablename__
    obj = model(**values)
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[{table}] 추가 실패: {e}")
        raise StoreError(str(e.__cause__ or e))
    return obj


def exists_any(db: Session, model, column: str, values: list) -> bool:
    """ column 값이 values 중 하나와 일치하는 행이 있는지 """
    table = model.__tablename__
    try:
        row = db.query(model).filter(getattr(model, column).in_(values)).first()
    except SQLAlchemyError as e:
        logger.error(f"[{table}] 조회 실패: {e}")
        raise StoreError(f"Could not fetch {table}")
    return row is not None
