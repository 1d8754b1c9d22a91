"""HTTP-level tests against the FastAPI app with a throwaway SQLite file."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth, fresh, locked_commits
from jazzlink.config import settings
from jazzlink.errors import TransientStoreError
from jazzlink.models.musician import Musician
from jazzlink.models.team import Team
from jazzlink.models.venue import Venue
from jazzlink.services import membership, places, roster

MUSICIAN_BODY = {
    "name": "Chet",
    "instruments": ["trumpet"],
    "skill_level": "프로",
    "start_year": 2015,
}


def _linked_ids(team):
    return [m["musician_id"] for m in team.members if roster.is_linked(m)]


# ═══════════════════════════════════════════════════════════════
#  Accounts
# ═══════════════════════════════════════════════════════════════

async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_me_requires_a_token(client):
    assert (await client.get("/users/me")).status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert (await client.get("/users/me", headers=bad)).status_code == 401


async def test_first_sign_in_creates_the_user(client):
    resp = await client.get("/users/me", headers=auth("ella-1", "Ella"))
    assert resp.status_code == 200
    assert resp.json()["uid"] == "ella-1"
    assert resp.json()["name"] == "Ella"
    assert resp.json()["account_type"] is None

    resp = await client.put(
        "/users/me/account-type", json={"account_type": "musician"}, headers=auth("ella-1")
    )
    assert resp.status_code == 200
    assert resp.json()["account_type"] == "musician"

    public = await client.get("/users/ella-1")
    assert public.json()["account_type"] == "musician"


async def test_token_cookie_is_accepted(client):
    token = auth("cookie-1")["Authorization"].split(" ", 1)[1]
    resp = await client.get("/users/me", headers={"Cookie": f"access_token={token}"})
    assert resp.status_code == 200
    assert resp.json()["uid"] == "cookie-1"


# ═══════════════════════════════════════════════════════════════
#  Reviews
# ═══════════════════════════════════════════════════════════════

async def test_review_round_trip(client, venue):
    url = f"/venues/{venue.id}"
    resp = await client.post(
        f"{url}/reviews", json={"rating": 4, "content": "Great trio"}, headers=auth("fan-1", "Ann")
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["rating"] == {"total_rating": 4, "rating_count": 1, "average_rating": 4.0}
    assert body["review"]["author_name"] == "Ann"

    await client.post(
        f"{url}/reviews",
        json={"rating": 1, "content": "Too loud", "is_anonymous": True},
        headers=auth("fan-2", "Bob"),
    )

    rating = (await client.get(f"{url}/rating")).json()
    assert rating == {"total_rating": 5, "rating_count": 2, "average_rating": 2.5}

    reviews = (await client.get(f"{url}/reviews")).json()
    assert [r["content"] for r in reviews] == ["Too loud", "Great trio"]
    assert reviews[0]["author_name"] == "익명"
    assert reviews[0]["author_uid"] == "fan-2"


async def test_review_needs_sign_in(client, venue):
    resp = await client.post(f"/venues/{venue.id}/reviews", json={"rating": 4, "content": "x"})
    assert resp.status_code == 401


async def test_review_of_missing_target_is_404(client):
    resp = await client.post("/teams/42/reviews", json={"rating": 4, "content": "?"}, headers=auth("fan-1"))
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"
    assert (await client.get("/musicians/42/rating")).status_code == 404


@pytest.mark.parametrize("payload", [{"rating": 6, "content": "x"}, {"rating": 3, "content": "  "}])
async def test_bad_review_is_422_and_writes_nothing(client, db, venue, payload):
    resp = await client.post(f"/venues/{venue.id}/reviews", json=payload, headers=auth("fan-1"))
    assert resp.status_code == 422
    stored = await fresh(db, Venue, venue.id)
    assert stored.rating_count == 0


async def test_rating_must_be_an_integer(client, venue):
    resp = await client.post(
        f"/venues/{venue.id}/reviews", json={"rating": "5", "content": "x"}, headers=auth("fan-1")
    )
    assert resp.status_code == 422


async def test_unknown_kind_is_rejected(client):
    resp = await client.get("/users/1/rating")
    assert resp.status_code in (404, 422)


# ═══════════════════════════════════════════════════════════════
#  Musicians and teams
# ═══════════════════════════════════════════════════════════════

async def test_musician_join_switch_and_delete(client, db, teams):
    t1, t2 = teams
    headers = auth("chet-1", "C")

    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1.id}, headers=headers)
    assert resp.status_code == 201
    musician = resp.json()
    assert musician["owner_uid"] == "chet-1"
    assert musician["average_rating"] == 0.0
    assert _linked_ids(await fresh(db, Team, t1.id)) == [musician["id"]]

    # the account mirrors the profile
    me = (await client.get("/users/me", headers=headers)).json()
    assert me["name"] == "Chet"
    assert me["photo"] == musician["photos"][0]

    resp = await client.put(
        f"/musicians/{musician['id']}", json={**MUSICIAN_BODY, "team_id": t2.id}, headers=headers
    )
    assert resp.status_code == 200
    assert _linked_ids(await fresh(db, Team, t1.id)) == []
    assert _linked_ids(await fresh(db, Team, t2.id)) == [musician["id"]]

    listed = (await client.get("/musicians/", params={"team_id": t2.id})).json()
    assert [m["id"] for m in listed] == [musician["id"]]
    assert (await client.get("/musicians/", params={"instrument": "tuba"})).json() == []

    resp = await client.delete(f"/musicians/{musician['id']}", headers=headers)
    assert resp.status_code == 204
    assert _linked_ids(await fresh(db, Team, t2.id)) == []
    assert (await client.get(f"/musicians/{musician['id']}")).status_code == 404


async def test_only_owner_edits_a_musician(client, teams):
    resp = await client.post("/musicians/", json=MUSICIAN_BODY, headers=auth("chet-1"))
    musician_id = resp.json()["id"]

    resp = await client.put(f"/musicians/{musician_id}", json=MUSICIAN_BODY, headers=auth("intruder"))
    assert resp.status_code == 403
    assert resp.json()["error"] == "permission_denied"
    assert (await client.delete(f"/musicians/{musician_id}", headers=auth("intruder"))).status_code == 403


async def test_musician_with_unknown_team_is_404(client, db):
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": 999}, headers=auth("chet-1"))
    assert resp.status_code == 404


async def test_invalid_musician_is_422(client):
    resp = await client.post(
        "/musicians/", json={**MUSICIAN_BODY, "instruments": []}, headers=auth("chet-1")
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


async def test_roster_failure_is_reported_as_drift(client, db, teams, monkeypatch):
    t1, _ = teams

    async def broken_add(db, team_id, entry):
        raise TransientStoreError("database is locked")

    monkeypatch.setattr(membership, "add_to_roster", broken_add)
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1.id}, headers=auth("chet-1"))

    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "consistency_drift"
    assert body["team_id"] == t1.id
    assert body["committed"] == "musician"
    assert (await fresh(db, Musician, body["musician_id"])).team_id == t1.id


async def test_locked_roster_commit_returns_409(client, db, teams, monkeypatch):
    t1_id = teams[0].id
    headers = auth("chet-1", "Chet")
    await client.get("/users/me", headers=headers)

    # commit 1 saves the musician, commit 2 patches the roster
    real_commit = AsyncSession.commit
    calls = []

    async def commit(self):
        calls.append(self)
        if len(calls) == 2:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        await real_commit(self)

    monkeypatch.setattr(AsyncSession, "commit", commit)
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1_id}, headers=headers)
    monkeypatch.undo()

    assert resp.status_code == 409
    body = resp.json()
    assert (body["error"], body["team_id"], body["committed"]) == ("consistency_drift", t1_id, "musician")
    assert (await fresh(db, Musician, body["musician_id"])).team_id == t1_id
    assert _linked_ids(await fresh(db, Team, t1_id)) == []


async def test_team_roster_editing(client, db, owner):
    headers = auth(owner.uid)
    resp = await client.post(
        "/teams/",
        json={
            "team_name": "Blue Trio",
            "members": [
                {"name": "Bill", "instrument": "piano", "is_leader": True},
                {"name": "Scott", "instrument": "bass"},
            ],
        },
        headers=headers,
    )
    assert resp.status_code == 201
    team = resp.json()
    assert team["team_photos"]
    assert team["members"][0]["musician_id"] is None

    resp = await client.post(
        f"/teams/{team['id']}/members", json={"name": "Paul", "instrument": "drums"}, headers=headers
    )
    assert [m["name"] for m in resp.json()["members"]] == ["Bill", "Scott", "Paul"]

    resp = await client.post(f"/teams/{team['id']}/leader", json={"index": 2}, headers=headers)
    assert [m["is_leader"] for m in resp.json()["members"]] == [False, False, True]

    resp = await client.delete(f"/teams/{team['id']}/members/0", headers=headers)
    assert [m["name"] for m in resp.json()["members"]] == ["Scott", "Paul"]

    resp = await client.post(f"/teams/{team['id']}/leader", json={"index": 5}, headers=headers)
    assert resp.status_code == 422

    resp = await client.post(f"/teams/{team['id']}/leader", json={"index": 0}, headers=auth("intruder"))
    assert resp.status_code == 403


async def test_team_side_removal_keeps_musician_affiliation(client, db, owner, teams):
    t1, _ = teams
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1.id}, headers=auth("chet-1"))
    musician_id = resp.json()["id"]

    team = await fresh(db, Team, t1.id)
    index = next(i for i, m in enumerate(team.members) if m.get("musician_id") == musician_id)
    resp = await client.delete(f"/teams/{t1.id}/members/{index}", headers=auth(owner.uid))
    assert resp.status_code == 200

    assert (await fresh(db, Musician, musician_id)).team_id == t1.id


async def test_delete_team_unlinks_musicians(client, db, owner, teams):
    t1, _ = teams
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1.id}, headers=auth("chet-1"))
    musician_id = resp.json()["id"]

    assert (await client.delete(f"/teams/{t1.id}", headers=auth("chet-1"))).status_code == 403
    assert (await client.delete(f"/teams/{t1.id}", headers=auth(owner.uid))).status_code == 204
    assert (await client.get(f"/teams/{t1.id}")).status_code == 404
    assert (await client.get(f"/musicians/{musician_id}")).json()["team_id"] is None


# ═══════════════════════════════════════════════════════════════
#  Venues and schedule
# ═══════════════════════════════════════════════════════════════

async def test_weekly_schedule_runs_sunday_to_saturday(client, owner, venue):
    headers = auth(owner.uid)
    url = f"/venues/{venue.id}/performances"
    for title, when in [
        ("Saturday before", "2026-10-10T23:00:00+00:00"),
        ("Wednesday set", "2026-10-14T20:00:00+09:00"),
        ("Sunday after", "2026-10-18T00:30:00+00:00"),
    ]:
        resp = await client.post(url, json={"title": title, "date_time": when}, headers=headers)
        assert resp.status_code == 201

    week = (await client.get("/schedule", params={"day": "2026-10-17"})).json()
    assert [p["title"] for p in week] == ["Wednesday set"]
    assert week[0]["venue_name"] == "Club Evans"

    next_week = (await client.get("/schedule", params={"day": "2026-10-18"})).json()
    assert [p["title"] for p in next_week] == ["Sunday after"]

    other = (await client.get("/schedule", params={"day": "2026-10-14", "venue_id": venue.id + 1})).json()
    assert other == []


async def test_only_venue_owner_adds_performances(client, venue):
    resp = await client.post(
        f"/venues/{venue.id}/performances",
        json={"title": "Jam", "date_time": "2026-10-14T20:00:00"},
        headers=auth("intruder"),
    )
    assert resp.status_code == 403


async def test_create_and_edit_venue(client):
    headers = auth("boss-1")
    resp = await client.post("/venues/", json={"name": "Once in a Blue Moon"}, headers=headers)
    assert resp.status_code == 201
    venue = resp.json()
    assert venue["owner_uid"] == "boss-1"
    assert venue["average_rating"] == 0.0

    resp = await client.put(
        f"/venues/{venue['id']}", json={"name": "Blue Moon", "tags": ["live"]}, headers=headers
    )
    assert resp.json()["name"] == "Blue Moon"
    assert resp.json()["tags"] == ["live"]


# ═══════════════════════════════════════════════════════════════
#  Feed
# ═══════════════════════════════════════════════════════════════

async def test_feed_views_likes_and_comments(client):
    author = auth("writer-1", "Writer")
    resp = await client.post(
        "/feed/",
        json={"category": "연주자 구함", "title": "Need a drummer", "content": "Fridays", "instruments": ["drums"]},
        headers=author,
    )
    assert resp.status_code == 201
    post = resp.json()
    assert post["author_name"] == "Writer"
    assert "ui-avatars.com" in post["author_photo"]

    reader = auth("reader-1", "Reader")
    await client.get(f"/feed/{post['id']}", headers=reader)
    resp = await client.get(f"/feed/{post['id']}", headers=reader)
    assert resp.json()["view_count"] == 1
    # anonymous readers are not counted
    await client.get(f"/feed/{post['id']}")
    assert (await client.get(f"/feed/{post['id']}", headers=reader)).json()["view_count"] == 1

    liked = (await client.post(f"/feed/{post['id']}/like", headers=reader)).json()
    assert (liked["like_count"], liked["liked_by_me"]) == (1, True)
    unliked = (await client.post(f"/feed/{post['id']}/like", headers=reader)).json()
    assert (unliked["like_count"], unliked["liked_by_me"]) == (0, False)

    resp = await client.post(f"/feed/{post['id']}/comments", json={"content": "I'm in"}, headers=reader)
    assert resp.status_code == 201
    await client.post(f"/feed/{post['id']}/comments", json={"content": "Great"}, headers=author)
    comments = (await client.get(f"/feed/{post['id']}/comments")).json()
    assert [c["content"] for c in comments] == ["I'm in", "Great"]

    drummers = (await client.get("/feed/", params={"category": "연주자 구함", "instrument": "drums"})).json()
    assert [p["id"] for p in drummers] == [post["id"]]
    pianists = (await client.get("/feed/", params={"category": "연주자 구함", "instrument": "piano"})).json()
    assert pianists == []


async def test_feed_popular_sort_and_search(client):
    author = auth("writer-1", "Writer")
    quiet = (await client.post("/feed/", json={"title": "Quiet", "content": "hello"}, headers=author)).json()
    busy = (await client.post("/feed/", json={"title": "Busy", "content": "jam tonight"}, headers=author)).json()
    await client.post(f"/feed/{quiet['id']}/like", headers=auth("a"))
    await client.post(f"/feed/{quiet['id']}/like", headers=auth("b"))

    latest = (await client.get("/feed/")).json()
    assert [p["id"] for p in latest] == [busy["id"], quiet["id"]]
    popular = (await client.get("/feed/", params={"sort": "popular"})).json()
    assert [p["id"] for p in popular] == [quiet["id"], busy["id"]]

    found = (await client.get("/feed/", params={"q": "jam"})).json()
    assert [p["id"] for p in found] == [busy["id"]]


async def test_empty_post_is_rejected(client):
    resp = await client.post("/feed/", json={"title": " ", "content": "x"}, headers=auth("writer-1"))
    assert resp.status_code == 422
    assert (await client.post("/feed/", json={"title": "t", "content": "x"})).status_code == 401


# ═══════════════════════════════════════════════════════════════
#  Admin
# ═══════════════════════════════════════════════════════════════

@pytest.fixture
def admin(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_UIDS", ["admin-1"])
    return auth("admin-1", "Admin")


async def test_admin_endpoints_need_admin(client, admin):
    assert (await client.get("/admin/affiliations/drift")).status_code == 401
    assert (await client.get("/admin/affiliations/drift", headers=auth("someone"))).status_code == 403
    assert (await client.get("/admin/affiliations/drift", headers=admin)).json() == []


async def test_admin_reconcile_repairs_drift(client, db, owner, teams, admin):
    t1, _ = teams
    resp = await client.post("/musicians/", json={**MUSICIAN_BODY, "team_id": t1.id}, headers=auth("chet-1"))
    musician_id = resp.json()["id"]

    # the team owner drops the musician from the roster
    team = await fresh(db, Team, t1.id)
    await membership.save_team_profile(db, team, roster.without_musician(team.members, musician_id))

    report = (await client.get("/admin/affiliations/drift", headers=admin)).json()
    assert report == [
        {"kind": "missing_roster_entry", "musician_id": musician_id, "team_id": t1.id, "repaired": False}
    ]

    fixed = (await client.post("/admin/affiliations/reconcile", params={"repair": True}, headers=admin)).json()
    assert fixed[0]["repaired"] is True
    assert (await client.get("/admin/affiliations/drift", headers=admin)).json() == []
    assert musician_id in _linked_ids(await fresh(db, Team, t1.id))


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise places.requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


PLACE = {
    "id": "place-abc",
    "displayName": {"text": "Jazz Story"},
    "formattedAddress": "Mapo-gu, Seoul",
    "location": {"latitude": 37.55, "longitude": 126.92},
    "regularOpeningHours": {"weekdayDescriptions": ["Monday: 7PM-1AM", "Tuesday: 7PM-1AM"]},
    "websiteUri": "https://jazzstory.example",
}


async def test_admin_adds_venue_from_place(client, db, admin, monkeypatch):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers))
        return FakeResponse(PLACE)

    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setattr(places.requests, "get", fake_get)

    resp = await client.post("/admin/venues", json={"place_id": "place-abc"}, headers=admin)
    assert resp.status_code == 200
    venue = resp.json()
    assert venue["name"] == "Jazz Story"
    assert venue["google_place_id"] == "place-abc"
    assert venue["operating_hours"] == "Monday: 7PM-1AM\nTuesday: 7PM-1AM"
    assert calls[0][0].endswith("/place-abc")
    assert calls[0][1]["X-Goog-Api-Key"] == "test-key"

    # a second lookup updates the same venue
    await client.post("/admin/venues", json={"place_id": "place-abc"}, headers=admin)
    assert len((await client.get("/venues/")).json()) == 1

    refreshed = (await client.post("/admin/venues/refresh", headers=admin)).json()
    assert refreshed == {"updated": 1, "failed": 0}


async def test_place_lookup_failures(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")
    resp = await client.post("/admin/venues", json={"place_id": "place-abc"}, headers=admin)
    assert resp.status_code == 503

    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setattr(places.requests, "get", lambda url, **kw: FakeResponse({}, status=404))
    resp = await client.post("/admin/venues", json={"place_id": "nope"}, headers=admin)
    assert resp.status_code == 502
    assert resp.json()["error"] == "enrichment_failed"


def test_place_payload_mapping_skips_missing_fields():
    fields = places.place_to_venue_fields({"displayName": {"text": "Bare"}})
    assert fields == {"name": "Bare"}
    assert places.place_to_venue_fields(PLACE)["latitude"] == 37.55


def test_place_on_the_equator_keeps_its_coordinates():
    fields = places.place_to_venue_fields({"location": {"latitude": 0.0, "longitude": 0.0}})
    assert (fields["latitude"], fields["longitude"]) == (0.0, 0.0)


async def test_refresh_continues_past_a_store_failure(db, monkeypatch):
    db.add_all([
        Venue(name="First", google_place_id="place-1"),
        Venue(name="Second", google_place_id="place-2"),
    ])
    await db.commit()

    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setattr(places.requests, "get", lambda url, **kw: FakeResponse(PLACE))
    locked_commits(monkeypatch, db, 1)

    assert await places.refresh_all_venues(db) == {"updated": 1, "failed": 1}
