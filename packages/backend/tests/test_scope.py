"""Scope filter tests — the role → listing-filter decision, without HTTP.

Learn: build_scope() takes the submitter-id resolver as a plain async
callable, so these tests pass in small stubs and can check exactly
which store calls were (or were not) made.
"""

import uuid
from datetime import datetime, timezone

import pytest

from recordgate.auth.dependencies import SessionContext
from recordgate.errors import UnauthorizedRole
from recordgate.services.record_service import RecordScope, RecordService, build_scope


def _ctx(role: str) -> SessionContext:
    now = datetime.now(timezone.utc)
    return SessionContext(
        user_id=uuid.uuid4(), username="u", role=role, issued_at=now, expires_at=now
    )


def _resolver(ids):
    calls = []

    async def resolve(guardian_id):
        calls.append(guardian_id)
        return set(ids)

    resolve.calls = calls
    return resolve


class StubStore:
    """Records list_where calls instead of querying."""

    def __init__(self):
        self.calls = []

    async def list_where(self, model, *criteria, order_by=None):
        self.calls.append((model, criteria, order_by))
        return []


class StubLinks:
    def __init__(self, ids):
        self.resolve_submitter_ids = _resolver(ids)


@pytest.mark.asyncio
async def test_submitter_scope_is_own_id():
    ctx = _ctx("submitter")
    resolve = _resolver([])
    scope = await build_scope(ctx, resolve)

    assert len(scope.criteria) == 1
    clause = scope.criteria[0]
    assert clause.left.name == "owner_id"
    assert clause.right.value == ctx.user_id
    assert resolve.calls == []


@pytest.mark.asyncio
async def test_reviewer_scope_is_unrestricted():
    scope = await build_scope(_ctx("reviewer"), _resolver([]))
    assert scope == RecordScope()
    assert scope.criteria == ()
    assert scope.matches_nothing is False


@pytest.mark.asyncio
async def test_guardian_without_links_matches_nothing():
    ctx = _ctx("guardian")
    resolve = _resolver([])
    scope = await build_scope(ctx, resolve)

    assert scope.matches_nothing is True
    assert resolve.calls == [ctx.user_id]


@pytest.mark.asyncio
async def test_guardian_scope_is_linked_ids():
    linked = [uuid.uuid4(), uuid.uuid4()]
    scope = await build_scope(_ctx("guardian"), _resolver(linked))

    assert scope.matches_nothing is False
    clause = scope.criteria[0]
    assert clause.left.name == "owner_id"
    assert set(clause.right.value) == set(linked)


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["superuser", "", "Reviewer", "admin"])
async def test_unknown_role_fails_closed(role):
    with pytest.raises(UnauthorizedRole):
        await build_scope(_ctx(role), _resolver([uuid.uuid4()]))


@pytest.mark.asyncio
async def test_unlinked_guardian_skips_record_query():
    store = StubStore()
    svc = RecordService(store, links=StubLinks([]))

    assert await svc.list_records(_ctx("guardian")) == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_listing_orders_newest_first():
    store = StubStore()
    svc = RecordService(store, links=StubLinks([]))

    await svc.list_records(_ctx("reviewer"))
    (_, criteria, order_by), = store.calls
    assert criteria == ()
    assert str(order_by).endswith("DESC")


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["reviewer", "guardian", "superuser"])
async def test_submit_refused_without_store_call(role):
    class NoInsertStore:
        async def insert(self, obj):
            raise AssertionError("insert must not be called")

    svc = RecordService(NoInsertStore(), links=StubLinks([]))
    with pytest.raises(UnauthorizedRole):
        await svc.submit(_ctx(role), "title", "content")
