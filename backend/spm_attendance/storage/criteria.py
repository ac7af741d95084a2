"""Predicates shared by the SQL and in-memory record stores.

A :class:`Criteria` is a conjunction of ``(field, operator, value)``
conditions plus optional OR groups. It renders to a SQLAlchemy clause for
the persistent store and evaluates directly against objects for the
fallback store, so both backends answer the same question the same way.
"""
import operator
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, false, or_, true

_COMPARISONS = {
    'lt': operator.lt,
    'lte': operator.le,
    'gt': operator.gt,
    'gte': operator.ge,
}

OPERATORS = ('eq', 'ne', 'in') + tuple(_COMPARISONS)

Sort = List[Tuple[str, str]]


class Criteria:
    """Field conditions on model attribute names, all of which must hold."""

    def __init__(self, **equals: Any):
        self.conditions: List[Tuple[str, str, Any]] = [
            (field, 'eq', value) for field, value in equals.items()
        ]
        self.groups: List[List['Criteria']] = []

    def where(self, field: str, op: str, value: Any) -> 'Criteria':
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        self.conditions.append((field, op, value))
        return self

    def any_of(self, *options: 'Criteria') -> 'Criteria':
        """Require at least one of ``options`` to match."""
        self.groups.append(list(options))
        return self

    def matches(self, record: Any) -> bool:
        for field, op, value in self.conditions:
            actual = getattr(record, field, None)
            if op == 'eq':
                if actual != value:
                    return False
            elif op == 'ne':
                if actual == value:
                    return False
            elif op == 'in':
                if actual not in value:
                    return False
            elif actual is None or not _COMPARISONS[op](actual, value):
                return False
        return all(any(option.matches(record) for option in group) for group in self.groups)

    def to_clause(self, model):
        clauses = []
        for field, op, value in self.conditions:
            column = getattr(model, field)
            if op == 'eq':
                clauses.append(column.is_(None) if value is None else column == value)
            elif op == 'ne':
                # NULL != value is unknown in SQL; match the in-memory semantics
                clauses.append(column.isnot(None) if value is None
                               else or_(column != value, column.is_(None)))
            elif op == 'in':
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(_COMPARISONS[op](column, value))
        for group in self.groups:
            if group:
                clauses.append(or_(*[option.to_clause(model) for option in group]))
            else:
                clauses.append(false())
        return and_(true(), *clauses)

    def __repr__(self) -> str:
        return f'<Criteria {self.conditions} groups={len(self.groups)}>'


def owned_by(lecturer_id: Optional[int] = None, lecturer_name: Optional[str] = None) -> Criteria:
    """Records owned by a lecturer, by stable id or by display name for legacy rows.

    With an id known, the name only claims rows that carry no ``lecturer_id``;
    a row stamped with another lecturer's id never matches.
    """
    options = []
    if lecturer_id is not None:
        options.append(Criteria(lecturer_id=lecturer_id))
        if lecturer_name:
            options.append(Criteria(lecturer_id=None, lecturer=lecturer_name))
    elif lecturer_name:
        options.append(Criteria(lecturer=lecturer_name))
    return Criteria().any_of(*options)


def expired_sessions(now: datetime, lecturer_id: Optional[int] = None,
                     lecturer_name: Optional[str] = None) -> Criteria:
    """Sessions whose window closed at or before ``now``.

    With no lecturer given this covers every session; the periodic sweep and
    the create-time sweep both go through here.
    """
    if lecturer_id is None and not lecturer_name:
        criteria = Criteria()
    else:
        criteria = owned_by(lecturer_id, lecturer_name)
    return criteria.where('expires_at', 'lte', now)


def active_sessions(now: datetime, lecturer_id: Optional[int] = None,
                    lecturer_name: Optional[str] = None) -> Criteria:
    """Sessions still open at ``now``."""
    if lecturer_id is None and not lecturer_name:
        criteria = Criteria()
    else:
        criteria = owned_by(lecturer_id, lecturer_name)
    return criteria.where('expires_at', 'gt', now)
