"""
In-memory stand-in for the PostgREST APIClient.

Understands the subset of PostgREST the services use: eq/neq/in/is/gt/gte
filters, `or=(...)`, `order`, `limit`, one-level embeds such as
`*,team:teams(id,name,emoji)`, inserts, upserts, updates, deletes and RPCs.
Every call is recorded in `calls` so tests can assert on side effects.
"""
import copy
import itertools
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from exceptions import APIException, ConflictException

_EMBED = re.compile(r'(\w+):(\w+)\(([^)]*)\)')
_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)

# (table, column) pairs with a unique constraint
UNIQUE_COLUMNS = {
    ('team_draft_picks', 'card_pool_id'),
    ('draft_settings', 'setting_key'),
}

# Columns the store fills with now() on insert
TIMESTAMP_DEFAULTS = {
    'team_draft_picks': ('drafted_at',),
}


def _text(value: Any) -> str:
    """PostgREST's textual form of a stored value."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _number(value: Any) -> Any:
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def _split_top_level(text: str) -> List[str]:
    parts, depth, current = [], 0, ''
    for char in text:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        if char == ',' and depth == 0:
            parts.append(current)
            current = ''
        else:
            current += char
    if current:
        parts.append(current)
    return parts


def _matches(row: Dict[str, Any], column: str, expression: str) -> bool:
    negate = expression.startswith('not.')
    if negate:
        expression = expression[4:]
    op, _, operand = expression.partition('.')
    value = row.get(column)

    if op == 'eq':
        result = _text(value) == operand
    elif op == 'neq':
        result = _text(value) != operand
    elif op == 'in':
        result = _text(value) in operand.strip('()').split(',')
    elif op == 'is':
        result = _text(value) == operand
    elif op in ('gt', 'gte', 'lt', 'lte'):
        if value is None:
            result = False
        else:
            left, right = _number(value), _number(operand)
            result = {
                'gt': left > right, 'gte': left >= right,
                'lt': left < right, 'lte': left <= right,
            }[op]
    else:
        raise ValueError(f"Unsupported filter operator: {op}")

    return not result if negate else result


class FakeStore:
    """Dictionary-backed PostgREST double."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            'notify_all_users_draft': lambda args: None,
            'notify_draft_team_roles': lambda args: None,
            'spend_cubucks_on_draft': self._spend_cubucks,
        }
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self._clock = itertools.count(1)

    # -- test helpers -----------------------------------------------------

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        stored = []
        for row in rows:
            stored.append(self._store_row(table, dict(row)))
        return stored

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def fail(self, method: str, table: str, error: Optional[Exception] = None) -> None:
        """Make every `method` call on `table` raise."""
        self.failures[(method, table)] = error or APIException(f"{method} on {table} failed", status=500)

    def calls_to(self, method: str, name: Optional[str] = None) -> List[Any]:
        return [payload for m, n, payload in self.calls if m == method and (name is None or n == name)]

    # -- internals --------------------------------------------------------

    def _check_failure(self, method: str, table: str) -> None:
        error = self.failures.get((method, table))
        if error:
            raise error

    def _now(self) -> str:
        return (_EPOCH + timedelta(seconds=next(self._clock))).isoformat()

    def _store_row(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        if not row.get('id'):
            row['id'] = str(uuid.uuid4())
        for column in ('created_at',) + TIMESTAMP_DEFAULTS.get(table, ()):
            if row.get(column) is None:
                row[column] = self._now()

        for unique_table, column in UNIQUE_COLUMNS:
            if unique_table != table or row.get(column) is None:
                continue
            if any(existing.get(column) == row[column] for existing in self.rows(table)):
                raise ConflictException(
                    f"Conflict: duplicate key value violates unique constraint on {column}",
                    status=409, code='23505'
                )

        self.rows(table).append(row)
        return copy.deepcopy(row)

    def _filter(self, table: str, params) -> List[Dict[str, Any]]:
        rows = list(self.rows(table))
        order = None
        limit = None

        for key, value in params or []:
            value = str(value)
            if key == 'order':
                order = value
            elif key == 'limit':
                limit = int(value)
            elif key == 'select':
                continue
            elif key == 'or':
                clauses = []
                for clause in _split_top_level(value.strip('()')):
                    column, _, expression = clause.partition('.')
                    clauses.append((column, expression))
                rows = [r for r in rows if any(_matches(r, c, e) for c, e in clauses)]
            else:
                rows = [r for r in rows if _matches(r, key, value)]

        if order:
            for clause in reversed(order.split(',')):
                column, _, direction = clause.partition('.')
                descending = direction.startswith('desc')
                present = [r for r in rows if r.get(column) is not None]
                missing = [r for r in rows if r.get(column) is None]
                present.sort(key=lambda r: _number(r[column]), reverse=descending)
                rows = present + missing

        if limit is not None:
            rows = rows[:limit]
        return rows

    def _embed(self, rows: List[Dict[str, Any]], columns: str) -> List[Dict[str, Any]]:
        result = [copy.deepcopy(row) for row in rows]
        for alias, table, _ in _EMBED.findall(columns):
            related = {r['id']: r for r in self.rows(table)}
            for row in result:
                target = related.get(row.get(f'{alias}_id'))
                row[alias] = copy.deepcopy(target) if target else None
        return result

    def _spend_cubucks(self, args: Dict[str, Any]) -> None:
        for team in self.rows('teams'):
            if team['id'] == args['p_team_id']:
                team['cubucks_balance'] = team.get('cubucks_balance', 0) - args['p_amount']
                team['cubucks_total_spent'] = team.get('cubucks_total_spent', 0) + args['p_amount']
                return
        raise APIException("Team not found", status=400)

    # -- APIClient interface ----------------------------------------------

    async def select(self, table: str, params=None, columns: str = "*", timeout=None) -> List[Dict[str, Any]]:
        self.calls.append(('select', table, list(params or [])))
        self._check_failure('select', table)
        return self._embed(self._filter(table, params), columns)

    async def select_one(self, table: str, params=None, columns: str = "*", timeout=None) -> Optional[Dict[str, Any]]:
        query = list(params or [])
        if not any(key == 'limit' for key, _ in query):
            query.append(('limit', 1))
        rows = await self.select(table, query, columns=columns)
        return rows[0] if rows else None

    async def insert(self, table: str, data, timeout=None) -> List[Dict[str, Any]]:
        self.calls.append(('insert', table, copy.deepcopy(data)))
        self._check_failure('insert', table)
        rows = data if isinstance(data, list) else [data]
        return [self._store_row(table, dict(row)) for row in rows]

    async def upsert(self, table: str, data, on_conflict: Optional[str] = None, timeout=None) -> List[Dict[str, Any]]:
        self.calls.append(('upsert', table, copy.deepcopy(data)))
        self._check_failure('upsert', table)
        result = []
        for row in (data if isinstance(data, list) else [data]):
            existing = next(
                (r for r in self.rows(table) if on_conflict and r.get(on_conflict) == row.get(on_conflict)),
                None
            )
            if existing:
                existing.update(row)
                result.append(copy.deepcopy(existing))
            else:
                result.append(self._store_row(table, dict(row)))
        return result

    async def update(self, table: str, data: Dict[str, Any], params, timeout=None) -> List[Dict[str, Any]]:
        if not params:
            raise APIException("Refusing to update without filters")
        self.calls.append(('update', table, (copy.deepcopy(data), list(params))))
        self._check_failure('update', table)
        matched = self._filter(table, params)
        for row in matched:
            row.update(copy.deepcopy(data))
        return [copy.deepcopy(row) for row in matched]

    async def delete(self, table: str, params, timeout=None) -> List[Dict[str, Any]]:
        if not params:
            raise APIException("Refusing to delete without filters")
        self.calls.append(('delete', table, list(params)))
        self._check_failure('delete', table)
        matched = self._filter(table, params)
        ids = {id(row) for row in matched}
        self.tables[table] = [row for row in self.rows(table) if id(row) not in ids]
        return [copy.deepcopy(row) for row in matched]

    async def rpc(self, function: str, args: Optional[Dict[str, Any]] = None, timeout=None) -> Any:
        self.calls.append(('rpc', function, copy.deepcopy(args or {})))
        self._check_failure('rpc', function)
        handler = self.rpc_handlers.get(function)
        if handler is None:
            raise APIException(f"Function {function} not found", status=404)
        return handler(args or {})

    async def close(self) -> None:
        return None
