"""
Read-model composition: filtered, sorted, paginated listings of one base
table, enriched with related rows and derived fields, shaped by an explicit
projection.

Pipeline for paginate():
  1. filter the base table (equality, presence and extra criteria)
  2. total = count of the filtered rows
  3. order by the resolved sort key (id as tie-break), slice the page
  4. left-outer joins, one batched IN lookup per JoinSpec (nested specs recurse)
  5. derived fields (Count, Contains) over the joined shape
  6. projection: only the listed fields survive

Joins never drop or reorder base rows and sort keys are base columns, so
slicing before joining returns the same page as joining first.
"""
from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Optional

from sqlalchemy import Table, select

from utils.errors import InternalError, NotFoundError, ValidationError
from utils.result import Err, Ok, Result

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 1_000_000

ASCENDING = frozenset({"asc", "ascending", "1"})
DESCENDING = frozenset({"desc", "descending", "-1"})


def _positive_int(raw, default: int) -> int:
    if isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name.strip()).lower()


def project(doc: Mapping, fields: Iterable[str]) -> dict:
    """Keep only `fields`; a listed field that is absent comes back as None."""
    return {f: doc.get(f) for f in fields}


@dataclass(frozen=True)
class Pagination:
    """1-indexed page + page size. Bad input degrades to the defaults."""

    page: Any = DEFAULT_PAGE
    limit: Any = DEFAULT_LIMIT
    sort_by: Optional[str] = None
    sort_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "page", min(_positive_int(self.page, DEFAULT_PAGE), MAX_PAGE))
        object.__setattr__(self, "limit", min(_positive_int(self.limit, DEFAULT_LIMIT), MAX_LIMIT))

    @classmethod
    def from_args(cls, args: Mapping) -> "Pagination":
        return cls(
            page=args.get("page"),
            limit=args.get("limit"),
            sort_by=args.get("sortBy") or None,
            sort_type=args.get("sortType") or None,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class Through:
    """Association table for many-to-many joins."""

    table: Table
    local_key: str      # column pointing at the base document
    foreign_key: str    # column pointing at the joined document
    order_by: Optional[str] = None
    descending: bool = False


@dataclass(frozen=True)
class JoinSpec:
    """
    One related-table lookup merged into each document under `target`.

    to-one (many=False): zero or one match; no match -> None, more than one
    match -> InternalError.
    to-many (many=True): list of matches, ordered by `order_by` when the
    source has that column.
    `fields` is the retained projection of the joined documents (None keeps
    every non-sensitive column). Nested `joins` run on the joined documents
    before that projection.
    `where(caller_id)` returns an extra criterion on the joined rows; rows it
    excludes count as not matched.
    """

    source: Any
    local_key: str
    foreign_key: str
    target: str
    fields: Optional[tuple] = None
    many: bool = False
    through: Optional[Through] = None
    joins: tuple = ()
    order_by: str = "created_at"
    where: Optional[Callable[[Optional[str]], Any]] = None

    def __post_init__(self):
        if self.through is not None and not self.many:
            raise ValueError(f"join '{self.target}' through an association table must be to-many")


@dataclass(frozen=True)
class Count:
    """Cardinality of a to-many join."""

    name: str
    of: str

    def compute(self, doc: Mapping, caller_id: Optional[str]) -> int:
        return len(doc.get(self.of) or ())


@dataclass(frozen=True)
class Contains:
    """Whether the caller appears in a to-many join (by `key`). No caller -> False."""

    name: str
    of: str
    key: str

    def compute(self, doc: Mapping, caller_id: Optional[str]) -> bool:
        if caller_id is None:
            return False
        return any(item.get(self.key) == caller_id for item in doc.get(self.of) or ())


@dataclass(frozen=True)
class ReadModel:
    base: Any
    projection: tuple
    joins: tuple = ()
    derived: tuple = ()
    sortable: tuple = ("created_at",)
    default_sort: str = "created_at"


class ReadModelComposer:
    def __init__(self, session):
        self.session = session

    def paginate(
        self,
        model: ReadModel,
        pagination: Optional[Pagination] = None,
        match: Optional[Mapping[str, Any]] = None,
        present: Iterable[str] = (),
        caller_id: Optional[str] = None,
        where: Iterable = (),
    ) -> Result[Page]:
        pagination = pagination or Pagination()
        order = self._order_by(model, pagination)
        if not order.ok:
            return order

        query = self._filtered(model, match, present, where)
        total = query.count()
        rows = query.order_by(*order.value).offset(pagination.offset).limit(pagination.limit).all()

        shaped = self._shape(model, rows, caller_id)
        if not shaped.ok:
            return shaped
        return Ok(Page(items=shaped.value, total=total, page=pagination.page, limit=pagination.limit))

    def find_one(
        self,
        model: ReadModel,
        match: Optional[Mapping[str, Any]] = None,
        present: Iterable[str] = (),
        caller_id: Optional[str] = None,
        not_found: str = "Resource not found",
        where: Iterable = (),
    ) -> Result[dict]:
        row = (
            self._filtered(model, match, present, where)
            .order_by(getattr(model.base, model.default_sort).desc(), model.base.id.desc())
            .first()
        )
        if row is None:
            return Err(NotFoundError(not_found))
        shaped = self._shape(model, [row], caller_id)
        if not shaped.ok:
            return shaped
        return Ok(shaped.value[0])

    def _filtered(self, model: ReadModel, match, present, where=()):
        criteria = [getattr(model.base, key) == value for key, value in (match or {}).items()]
        criteria += [getattr(model.base, key).isnot(None) for key in present]
        criteria += list(where)
        return self.session.query(model.base).filter(*criteria)

    @staticmethod
    def _order_by(model: ReadModel, pagination: Pagination) -> Result[list]:
        key, descending = model.default_sort, True
        # only an explicit field/direction pair overrides the recency default
        if pagination.sort_by and pagination.sort_type:
            key = _snake_case(pagination.sort_by)
            if key not in model.sortable:
                return Err(ValidationError(f"Unsupported sort field: {pagination.sort_by}"))
            direction = str(pagination.sort_type).strip().lower()
            if direction in ASCENDING:
                descending = False
            elif direction not in DESCENDING:
                return Err(ValidationError(f"Unsupported sort direction: {pagination.sort_type}"))

        column, tiebreak = getattr(model.base, key), model.base.id
        if descending:
            return Ok([column.desc(), tiebreak.desc()])
        return Ok([column.asc(), tiebreak.asc()])

    def _shape(self, model: ReadModel, rows, caller_id) -> Result[list]:
        docs = [row.to_dict() for row in rows]
        joined = self._join(docs, model.joins, caller_id)
        if not joined.ok:
            return joined
        for doc in docs:
            for derived in model.derived:
                doc[derived.name] = derived.compute(doc, caller_id)
        return Ok([project(doc, model.projection) for doc in docs])

    def _join(self, docs: list, joins, caller_id=None) -> Result[None]:
        for spec in joins:
            keys = {doc.get(spec.local_key) for doc in docs} - {None}
            grouped = self._lookup(spec, keys, caller_id) if keys else Ok({})
            if not grouped.ok:
                return grouped

            for doc in docs:
                matches = grouped.value.get(doc.get(spec.local_key), [])
                if spec.many:
                    doc[spec.target] = list(matches)
                elif len(matches) > 1:
                    return Err(InternalError(
                        f"to-one join '{spec.target}' matched {len(matches)} documents",
                        details={"key": doc.get(spec.local_key)},
                    ))
                else:
                    doc[spec.target] = matches[0] if matches else None
        return Ok(None)

    def _lookup(self, spec: JoinSpec, keys: set, caller_id=None) -> Result[dict]:
        """Joined documents grouped by the value they matched on."""
        if spec.through is not None:
            return self._lookup_through(spec, keys, caller_id)

        query = self.session.query(spec.source).filter(getattr(spec.source, spec.foreign_key).in_(keys))
        if spec.where is not None:
            query = query.filter(spec.where(caller_id))
        if hasattr(spec.source, spec.order_by):
            query = query.order_by(getattr(spec.source, spec.order_by).asc())
        docs = [row.to_dict() for row in query.order_by(spec.source.id.asc()).all()]

        nested = self._join(docs, spec.joins, caller_id)
        if not nested.ok:
            return nested

        grouped = defaultdict(list)
        for doc in docs:
            grouped[doc.get(spec.foreign_key)].append(
                doc if spec.fields is None else project(doc, spec.fields)
            )
        return Ok(grouped)

    def _lookup_through(self, spec: JoinSpec, keys: set, caller_id=None) -> Result[dict]:
        link = spec.through
        local, foreign = link.table.c[link.local_key], link.table.c[link.foreign_key]
        order = []
        if link.order_by:
            column = link.table.c[link.order_by]
            order.append(column.desc() if link.descending else column.asc())
        pairs = self.session.execute(
            select(local, foreign).where(local.in_(keys)).order_by(*order, foreign)
        ).all()

        targets = {foreign_value for _, foreign_value in pairs}
        found = self._lookup(replace(spec, through=None), targets, caller_id) if targets else Ok({})
        if not found.ok:
            return found

        grouped = defaultdict(list)
        for local_value, foreign_value in pairs:
            grouped[local_value].extend(found.value.get(foreign_value, []))
        return Ok(grouped)
