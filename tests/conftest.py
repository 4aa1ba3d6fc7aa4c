"""
Fixtures dos testes do portal.

FakeSupabase imita o pedaço do query builder do supabase-py que a camada
de dados usa (table/select/eq/order/limit/insert/update/delete/execute)
sobre linhas em memória.
"""

import itertools
from types import SimpleNamespace

import pytest
from supabase import PostgrestAPIError

from core.auth import AuthError, AuthUser
from core.session import SessionContext


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*"):
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        return self.db._execute(self)


class FakeSupabase:
    def __init__(self, tables=None, unique=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.unique = unique or {}
        self.calls = []
        self.errors = {}
        self.after_execute = []
        self._ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, code="XX000", message="boom"):
        self.errors[(table, op)] = PostgrestAPIError({"message": message, "code": code})

    def _execute(self, q):
        self.calls.append((q.table, q.op, q.payload, list(q.filters)))
        error = self.errors.get((q.table, q.op))
        if error is not None:
            raise error

        rows = self.tables.setdefault(q.table, [])

        if q.op == "select":
            data = [dict(r) for r in rows if q._matches(r)]
            if q.order_by:
                col, desc = q.order_by
                data.sort(key=lambda r: (r.get(col) is None, r.get(col) or ""), reverse=desc)
            if q.limit_n is not None:
                data = data[: q.limit_n]

        elif q.op == "insert":
            new_rows = q.payload if isinstance(q.payload, list) else [q.payload]
            data = []
            for payload in new_rows:
                for col in self.unique.get(q.table, []):
                    key = tuple(payload.get(c) for c in col) if isinstance(col, tuple) else payload.get(col)
                    existing = [
                        tuple(r.get(c) for c in col) if isinstance(col, tuple) else r.get(col)
                        for r in rows
                    ]
                    if key in existing:
                        raise PostgrestAPIError(
                            {"message": "duplicate key value violates unique constraint", "code": "23505"}
                        )
                row = dict(payload)
                row.setdefault("id", f"{q.table}-{next(self._ids)}")
                rows.append(row)
                data.append(dict(row))

        elif q.op == "update":
            data = []
            for r in rows:
                if q._matches(r):
                    r.update(q.payload)
                    data.append(dict(r))

        else:
            data = [dict(r) for r in rows if q._matches(r)]
            self.tables[q.table] = [r for r in rows if not q._matches(r)]

        result = SimpleNamespace(data=data)
        for hook in list(self.after_execute):
            hook(q)
        return result


class FakeAuth:
    def __init__(self, user=None, error=None):
        self.user = user or AuthUser(id="u-1", email="ana@obra.com.br", access_token="token-1")
        self.error = error
        self.signed_out = []
        self.signed_up = []

    def sign_in(self, email, password):
        if self.error:
            raise self.error
        return self.user

    def sign_up(self, email, password, full_name, metadata=None, redirect_to=None):
        self.signed_up.append((email, full_name, metadata))
        return self.user

    def sign_out(self, access_token):
        self.signed_out.append(access_token)


@pytest.fixture
def access_profile_rows():
    return [
        {"id": "ap-estado", "name": "Gerente Regional", "description": None, "filter_level": "estado",
         "created_at": "2024-01-01T00:00:00+00:00"},
        {"id": "ap-obra", "name": "Engenheiro", "description": "Vê só a própria obra", "filter_level": "obra",
         "created_at": "2024-01-02T00:00:00+00:00"},
    ]


@pytest.fixture
def fake_sb(access_profile_rows):
    """Banco fake com um usuário comum e um admin."""
    return FakeSupabase(
        tables={
            "profiles": [
                {"id": "p-1", "user_id": "u-1", "full_name": "Ana Souza", "email": "ana@obra.com.br",
                 "is_active": True, "estado": "Ceará", "cidade": "Fortaleza", "obra": "Residencial Beira Mar",
                 "access_profile_id": "ap-obra"},
                {"id": "p-2", "user_id": "u-2", "full_name": "Bruno Lima", "email": "bruno@obra.com.br",
                 "is_active": None, "estado": None, "cidade": None, "obra": None, "access_profile_id": None},
            ],
            "user_roles": [
                {"user_id": "u-1", "role": "user"},
                {"user_id": "u-2", "role": "admin"},
            ],
            "access_profiles": access_profile_rows,
        },
        unique={
            "access_profiles": ["name"],
            "user_workspaces": [("user_id", "workspace_id")],
        },
    )


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def session(fake_auth, fake_sb):
    """SessionContext com client fake injetado."""
    return SessionContext(fake_auth, lambda token: fake_sb)


@pytest.fixture
def auth_error():
    return AuthError("Email ou senha inválidos.", 400)
