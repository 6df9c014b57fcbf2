"""선언적 목록 조회 요청(필터/메타 조건/분류/검색/페이지네이션)을 단일 SQLAlchemy 쿼리로 변환합니다.

모든 호출자 입력은 바인드 파라미터로만 전달되며, 컬럼 이름은 엔티티의 코어 필드 목록에서만 허용한다.
메타 값은 JSON 문자열로 저장되므로 비교 대상도 같은 방식으로 인코딩한다. 숫자 비교는 저장된 값이 JSON 숫자인
행에만 적용되며(`utils.sql.json_number`), 문자열이나 불리언 값은 숫자 조건에 일치하지 않는다.
"""

import operator
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, exists, func, not_, or_
from sqlalchemy.orm import Query, Session

from app.config import settings
from app.models.term import Term, TermRelationship
from app.services.entity_kinds import EntityKind
from app.services.meta_store import encode_value
from app.services.ownership_store import owned_by_clause
from app.utils.errors import ValidationFailed
from app.utils.sql import json_number

_COMPARATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}
_LIST_OPERATORS = ("IN", "NOT IN", "BETWEEN", "NOT BETWEEN")
_PRESENCE_OPERATORS = ("EXISTS", "NOT EXISTS")
SUPPORTED_COMPARE = (*_COMPARATORS, "LIKE", "NOT LIKE", *_LIST_OPERATORS, *_PRESENCE_OPERATORS)


@dataclass
class MetaCondition:
    key: str
    value: Any = None
    compare: str = "="
    relation: Optional[str] = None


@dataclass
class ListQuery:
    status: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)
    meta_query: Any = None
    taxonomy_query: Optional[Dict[str, Any]] = None
    search: Optional[str] = None
    searchable: List[str] = field(default_factory=lambda: ["slug"])
    trashed: bool = False
    order_by: str = "id"
    sort: str = "desc"
    limit: Optional[int] = None
    offset: int = 0


@dataclass
class ListResult:
    rows: List[Any]
    total: int
    total_current: int
    total_drafts: int
    total_published: int
    total_trashed: int
    limit: int
    offset: int


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{name} 값은 정수여야 합니다.")


def _operands(column, values: List[Any], dialect: str) -> Tuple[Any, List[Any]]:
    if values and all(_is_number(v) for v in values):
        return json_number(column, dialect), list(values)
    return column, [encode_value(v) for v in values]


def parse_meta_query(raw: Any) -> Tuple[str, List[MetaCondition]]:
    """``{relation, queries: [...]}``, 쿼리 목록, ``{key: {value, compare}}`` 축약형을 모두 받는다."""
    if not raw:
        return "AND", []

    relation = "AND"
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, dict) and "queries" in raw:
        relation = str(raw.get("relation") or "AND").upper()
        items = raw.get("queries") or []
    elif isinstance(raw, dict):
        relation = str(raw.get("relation") or "AND").upper()
        items = []
        for key, spec in raw.items():
            if key == "relation":
                continue
            if isinstance(spec, dict) and ("value" in spec or "compare" in spec):
                items.append({"key": key, **spec})
            else:
                items.append({"key": key, "value": spec})
    else:
        raise ValidationFailed("meta_query 형식이 올바르지 않습니다.")

    if relation not in ("AND", "OR"):
        raise ValidationFailed(f"지원하지 않는 relation입니다: {relation}")

    conditions = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("key"), str) or not item["key"]:
            raise ValidationFailed("meta_query 조건에는 key가 필요합니다.")
        compare = str(item.get("compare") or "=").upper().strip()
        if compare not in SUPPORTED_COMPARE:
            raise ValidationFailed(f"지원하지 않는 비교 연산자입니다: {compare}")
        conditions.append(
            MetaCondition(
                key=item["key"],
                value=item.get("value"),
                compare=compare,
                relation=str(item["relation"]).upper() if item.get("relation") else None,
            )
        )
    return relation, conditions


def _like_operand(value: Any) -> str:
    text = value if isinstance(value, str) else encode_value(value)
    return f"%{text}%"


def _value_predicate(column, compare: str, value: Any, dialect: str = "sqlite"):
    if compare in ("IN", "NOT IN"):
        values = list(value) if isinstance(value, (list, tuple)) else [value]
        target, encoded = _operands(column, values, dialect)
        return target.in_(encoded) if compare == "IN" else target.not_in(encoded)
    if compare in ("BETWEEN", "NOT BETWEEN"):
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ValidationFailed("BETWEEN 비교에는 두 개의 값이 필요합니다.")
        target, (low, high) = _operands(column, list(value), dialect)
        clause = target.between(low, high)
        return clause if compare == "BETWEEN" else not_(clause)
    if compare == "LIKE":
        return column.like(_like_operand(value))
    if compare == "NOT LIKE":
        return column.not_like(_like_operand(value))
    target, (operand,) = _operands(column, [value], dialect)
    return _COMPARATORS[compare](target, operand)


def meta_condition_clause(kind: EntityKind, condition: MetaCondition, dialect: str = "sqlite"):
    meta = kind.meta_model
    correlated = and_(kind.meta_fk_column == kind.pk_column, meta.field_slug == condition.key)
    if condition.compare == "EXISTS":
        return exists().where(correlated)
    if condition.compare == "NOT EXISTS":
        return ~exists().where(correlated)
    return exists().where(correlated, _value_predicate(meta.value, condition.compare, condition.value, dialect))


def compile_meta_query(kind: EntityKind, raw: Any, dialect: str = "sqlite"):
    """조건을 왼쪽부터 차례로 묶는다.

    첫 조건은 그대로 쓰고, 이후 조건은 최상위 relation이나 조건 자신의 relation이 OR이면 OR, 아니면 AND로
    지금까지의 결과 전체와 결합한다. 따라서 AND 아래의 ``[a, b(OR), c]`` 는 ``(a OR b) AND c`` 가 된다.
    """
    relation, conditions = parse_meta_query(raw)
    clause = None
    for condition in conditions:
        sub = meta_condition_clause(kind, condition, dialect)
        if clause is None:
            clause = sub
        elif relation == "OR" or condition.relation == "OR":
            clause = or_(clause, sub)
        else:
            clause = and_(clause, sub)
    return clause


def taxonomy_clause(kind: EntityKind, taxonomy_query: Dict[str, Any]):
    if not kind.has_relationships:
        raise ValidationFailed("이 엔티티는 taxonomy_query를 지원하지 않습니다.")
    if not isinstance(taxonomy_query, dict) or "taxonomy" not in taxonomy_query or "term" not in taxonomy_query:
        raise ValidationFailed("taxonomy_query에는 taxonomy와 term이 필요합니다.")
    return exists().where(
        TermRelationship.post_id == kind.pk_column,
        Term.id == TermRelationship.term_id,
        Term.taxonomy_slug == str(taxonomy_query["taxonomy"]),
        Term.id == _as_int(taxonomy_query["term"], "term"),
    )


def search_clause(kind: EntityKind, search: str, searchable: List[str]):
    pattern = f"%{search}%"
    core = [name for name in searchable if name in kind.core_fields]
    meta_keys = [name for name in searchable if name not in kind.core_fields]

    clauses = [kind.column(name).like(pattern) for name in core]
    if meta_keys:
        meta = kind.meta_model
        clauses.append(
            exists().where(
                kind.meta_fk_column == kind.pk_column,
                or_(*[and_(meta.field_slug == key, meta.value.like(pattern)) for key in meta_keys]),
            )
        )
    if not clauses:
        return None
    return or_(*clauses)


def _filter_clauses(kind: EntityKind, filters: Dict[str, Any]) -> List[Any]:
    if not isinstance(filters, dict):
        raise ValidationFailed("filters는 객체여야 합니다.")
    clauses = []
    for key, value in filters.items():
        if key not in kind.core_fields:
            raise ValidationFailed(f"필터할 수 없는 필드입니다: {key}")
        column = kind.column(key)
        if isinstance(value, (list, tuple)):
            clauses.append(column.in_(list(value)))
        elif value is not None and value != "":
            clauses.append(column == value)
    return clauses


def base_query(db: Session, kind: EntityKind, scope: Dict[str, Any], owner_id: Optional[int] = None) -> Query:
    query = db.query(kind.model).filter(*[kind.column(name) == value for name, value in scope.items()])
    if owner_id is not None:
        query = query.filter(owned_by_clause(kind, owner_id))
    return query


def count_totals(kind: EntityKind, query: Query) -> Dict[str, int]:
    model = kind.model
    live = model.deleted_at.is_(None)

    def bucket(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = query.with_entities(
        bucket(live).label("total"),
        bucket(and_(model.status == "draft", live)).label("total_drafts"),
        bucket(and_(model.status == "published", live)).label("total_published"),
        bucket(model.deleted_at.is_not(None)).label("total_trashed"),
    ).one()
    return {
        "total": int(row.total or 0),
        "total_drafts": int(row.total_drafts or 0),
        "total_published": int(row.total_published or 0),
        "total_trashed": int(row.total_trashed or 0),
    }


def apply_filters(kind: EntityKind, query: Query, request: ListQuery, dialect: str = "sqlite") -> Query:
    if request.status:
        query = query.filter(kind.model.status == request.status)

    clauses = _filter_clauses(kind, request.filters or {})
    if clauses:
        query = query.filter(*clauses)

    meta_clause = compile_meta_query(kind, request.meta_query, dialect)
    if meta_clause is not None:
        query = query.filter(meta_clause)

    if request.taxonomy_query:
        query = query.filter(taxonomy_clause(kind, request.taxonomy_query))

    if request.search:
        clause = search_clause(kind, request.search, request.searchable or [])
        if clause is not None:
            query = query.filter(clause)

    if request.trashed:
        query = query.filter(kind.model.deleted_at.is_not(None))
    else:
        query = query.filter(kind.model.deleted_at.is_(None))
    return query


def resolve_pagination(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
    if limit is None:
        limit = settings.LIST_LIMIT_DEFAULT
    limit = max(0, min(int(limit), settings.LIST_LIMIT_MAX))
    offset = max(0, int(offset or 0))
    return limit, offset


def order_clause(kind: EntityKind, order_by: str, sort: str):
    if order_by not in kind.core_fields:
        raise ValidationFailed(f"정렬할 수 없는 필드입니다: {order_by}")
    direction = str(sort or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationFailed("sort는 asc 또는 desc만 허용됩니다.")
    column = kind.column(order_by)
    pk = kind.pk_column
    if direction == "asc":
        return [column.asc(), pk.asc()]
    return [column.desc(), pk.desc()]


def run_list(
    db: Session,
    kind: EntityKind,
    scope: Dict[str, Any],
    request: ListQuery,
    owner_id: Optional[int] = None,
) -> ListResult:
    limit, offset = resolve_pagination(request.limit, request.offset)
    ordering = order_clause(kind, request.order_by or "id", request.sort)

    query = base_query(db, kind, scope, owner_id=owner_id)
    totals = count_totals(kind, query)

    filtered = apply_filters(kind, query, request, db.get_bind().dialect.name)
    total_current = filtered.order_by(None).count()
    rows = filtered.order_by(*ordering).limit(limit).offset(offset).all()

    return ListResult(
        rows=rows,
        total_current=total_current,
        limit=limit,
        offset=offset,
        **totals,
    )
