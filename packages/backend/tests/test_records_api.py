"""Record API tests — submission rules and role-scoped listing.

Pattern: every test registers its own users through the API, so tokens
go through the real auth gate.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from recordgate.db.models import Record


async def _submit(client, headers, title="Essay", content="Some words"):
    r = await client.post(
        "/api/v1/records", json={"title": title, "content": content}, headers=headers
    )
    assert r.status_code == 201, r.text
    return r.json()


async def _bind(client, guardian_headers, username):
    r = await client.post(
        "/api/v1/links", json={"username": username}, headers=guardian_headers
    )
    assert r.status_code == 201, r.text


# ═══════════════════════════════════════════════════════════
# Submission
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_submit_record(client, make_user):
    headers, user = await make_user("submitter")
    record = await _submit(client, headers, title="Lab report", content="Results")
    assert record["owner_id"] == user["id"]
    assert record["owner_name"] == user["username"]
    assert record["status"] == "pending"
    assert record["title"] == "Lab report"


@pytest.mark.asyncio
async def test_submit_ignores_owner_in_body(client, make_user):
    """Owner always comes from the token, never from the request body."""
    headers, user = await make_user("submitter")
    r = await client.post(
        "/api/v1/records",
        json={
            "title": "T",
            "content": "C",
            "owner_id": str(uuid.uuid4()),
            "owner_name": "someone-else",
        },
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["owner_id"] == user["id"]
    assert r.json()["owner_name"] == user["username"]


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["reviewer", "guardian"])
async def test_non_submitters_cannot_submit(client, make_user, db_session, role):
    headers, _ = await make_user(role)
    r = await client.post(
        "/api/v1/records", json={"title": "T", "content": "C"}, headers=headers
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "unauthorized_role"

    count = await db_session.scalar(select(func.count()).select_from(Record))
    assert count == 0


@pytest.mark.asyncio
async def test_role_checked_before_validation(client, make_user):
    headers, _ = await make_user("reviewer")
    r = await client.post("/api/v1/records", json={}, headers=headers)
    assert r.json()["kind"] == "unauthorized_role"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["reviewer", "guardian"])
async def test_role_checked_before_malformed_body(client, make_user, role):
    headers, _ = await make_user(role)
    r = await client.post(
        "/api/v1/records",
        content=b"{bad",
        headers={**headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "unauthorized_role"


@pytest.mark.asyncio
async def test_submitter_malformed_body(client, make_user):
    headers, _ = await make_user("submitter")
    r = await client.post(
        "/api/v1/records",
        content=b"{bad",
        headers={**headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json() == {"kind": "validation_error", "message": "Malformed request body"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"title": "", "content": "C"}, {"title": "T", "content": "   "}, {"title": "T"}, {}],
)
async def test_submit_requires_title_and_content(client, make_user, body):
    headers, _ = await make_user("submitter")
    r = await client.post("/api/v1/records", json=body, headers=headers)
    assert r.status_code == 400
    assert r.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_submit_requires_auth(client):
    r = await client.post("/api/v1/records", json={"title": "T", "content": "C"})
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_submitter_sees_only_own_records(client, make_user):
    alice_h, alice = await make_user("submitter")
    bob_h, _ = await make_user("submitter")
    await _submit(client, alice_h, title="alice-1")
    await _submit(client, bob_h, title="bob-1")
    await _submit(client, bob_h, title="bob-2")

    r = await client.get("/api/v1/records", headers=alice_h)
    assert r.status_code == 200
    rows = r.json()
    assert [row["title"] for row in rows] == ["alice-1"]
    assert all(row["owner_id"] == alice["id"] for row in rows)


@pytest.mark.asyncio
async def test_reviewer_sees_everything(client, make_user):
    alice_h, _ = await make_user("submitter")
    bob_h, _ = await make_user("submitter")
    reviewer_h, _ = await make_user("reviewer")
    await _submit(client, alice_h, title="a")
    await _submit(client, bob_h, title="b")

    r = await client.get("/api/v1/records", headers=reviewer_h)
    assert sorted(row["title"] for row in r.json()) == ["a", "b"]


@pytest.mark.asyncio
async def test_unlinked_guardian_sees_nothing(client, make_user):
    alice_h, _ = await make_user("submitter")
    guardian_h, _ = await make_user("guardian")
    await _submit(client, alice_h)

    r = await client.get("/api/v1/records", headers=guardian_h)
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_guardian_sees_union_of_linked_submitters(client, make_user, db_session):
    _, a = await make_user("submitter")
    _, b = await make_user("submitter")
    _, c = await make_user("submitter")
    guardian_h, _ = await make_user("guardian")

    await _bind(client, guardian_h, a["username"])
    await _bind(client, guardian_h, b["username"])

    # Interleave owners so a per-owner listing would come back out of order.
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    seeded = [(a, "a-old", 0), (c, "c-mid", 1), (b, "b-mid", 2), (a, "a-new", 3), (c, "c-new", 4)]
    for owner, title, hour in seeded:
        db_session.add(
            Record(
                owner_id=uuid.UUID(owner["id"]),
                owner_name=owner["username"],
                title=title,
                content="c",
                created_at=base + timedelta(hours=hour),
            )
        )
    await db_session.commit()

    r = await client.get("/api/v1/records", headers=guardian_h)
    assert r.status_code == 200
    rows = r.json()
    assert [row["title"] for row in rows] == ["a-new", "b-mid", "a-old"]
    assert {row["owner_id"] for row in rows} == {a["id"], b["id"]}


@pytest.mark.asyncio
async def test_listing_is_newest_first(client, make_user, db_session):
    headers, user = await make_user("submitter")
    owner_id = uuid.UUID(user["id"])
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for i, title in enumerate(["oldest", "middle", "newest"]):
        db_session.add(
            Record(
                owner_id=owner_id,
                owner_name=user["username"],
                title=title,
                content="c",
                created_at=base + timedelta(hours=i),
            )
        )
    await db_session.commit()

    r = await client.get("/api/v1/records", headers=headers)
    assert [row["title"] for row in r.json()] == ["newest", "middle", "oldest"]


@pytest.mark.asyncio
async def test_unknown_role_fails_closed(client, make_user, codec):
    """A validly signed token with a role we don't know gets nothing."""
    alice_h, _ = await make_user("submitter")
    await _submit(client, alice_h)

    token = codec.issue(str(uuid.uuid4()), "intruder", "superuser")
    r = await client.get(
        "/api/v1/records", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "unauthorized_role"


@pytest.mark.asyncio
async def test_expired_token_rejected(client, make_user, codec):
    _, user = await make_user("reviewer")
    token = codec.issue(user["id"], user["username"], "reviewer", ttl=timedelta(seconds=-5))
    r = await client.get(
        "/api/v1/records", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "invalid_or_expired_credential"
