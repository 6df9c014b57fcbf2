"""DB 방언별 upsert(INSERT ... ON CONFLICT DO UPDATE)와 JSON 숫자 비교 헬퍼입니다."""

from typing import Any, Dict, Sequence

from sqlalchemy import Float, case, cast, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def upsert(
    db: Session,
    model,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_values: Dict[str, Any],
) -> None:
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values)
    else:
        raise NotImplementedError(f"upsert is not supported for dialect '{dialect}'")
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=update_values)
    db.execute(stmt)


def json_number(column, dialect: str):
    """JSON 문자열 컬럼을 숫자일 때만 FLOAT로, 그 외에는 NULL로 변환한다."""
    if dialect == "sqlite":
        # json_type은 유효한 JSON 행에서만 평가한다.
        json_kind = case((func.json_valid(column) == 1, func.json_type(column)), else_=None)
        is_number = json_kind.in_(("integer", "real"))
    elif dialect == "postgresql":
        is_number = func.jsonb_typeof(cast(column, postgresql.JSONB)) == "number"
    else:
        raise NotImplementedError(f"numeric JSON comparison is not supported for dialect '{dialect}'")
    return cast(case((is_number, column), else_=None), Float)
