import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

import jazzlink.models  # noqa: F401
from jazzlink.database import Base, get_db, make_engine, make_session_factory
from jazzlink.main import app
from jazzlink.models.musician import Musician, SkillLevel
from jazzlink.models.team import Team
from jazzlink.models.user import User
from jazzlink.models.venue import Venue
from jazzlink.routers.auth import create_access_token


@pytest.fixture
async def engine(tmp_path):
    # A file database so every session gets its own connection and real locking.
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'jazzlink-test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth(uid: str, name: str = None) -> dict:
    claims = {"sub": uid}
    if name:
        claims["name"] = name
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


async def fresh(db, model, pk):
    """Re-read a row from the database, bypassing the session's cached copy."""
    result = await db.execute(
        select(model).where(model.id == pk).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@pytest.fixture
async def owner(db):
    user = User(uid="owner-1", name="Miles", photo="https://img.example/miles.png")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def venue(db, owner):
    v = Venue(name="Club Evans", address="Hongdae, Seoul", owner_uid=owner.uid)
    db.add(v)
    await db.commit()
    return v


@pytest.fixture
async def teams(db, owner):
    t1 = Team(
        team_name="Blue Trio",
        owner_uid=owner.uid,
        members=[
            {"name": "Bill", "instrument": "piano", "is_leader": True},
            {"name": "Scott", "instrument": "bass", "is_leader": False},
        ],
    )
    t2 = Team(
        team_name="Night Quartet",
        owner_uid=owner.uid,
        members=[{"name": "Paul", "instrument": "drums", "is_leader": False}],
    )
    db.add_all([t1, t2])
    await db.commit()
    return t1, t2


def new_musician(owner: User, team_id=None, name="Chet") -> Musician:
    return Musician(
        name=name,
        instruments=["trumpet", "vocals"],
        skill_level=SkillLevel.PRO,
        start_year=2015,
        owner_uid=owner.uid,
        team_id=team_id,
    )


def locked_commits(monkeypatch, session, *calls):
    """Make the numbered (1-based) commits on *session* fail with "database is locked"."""
    real_commit = session.commit
    count = 0

    async def commit():
        nonlocal count
        count += 1
        if count in calls:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        await real_commit()

    monkeypatch.setattr(session, "commit", commit)
