import os
import re
import tempfile
from datetime import timedelta
from uuid import uuid4

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SITE_URL"] = "http://testserver"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="placement-uploads-")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.base import Base, get_db, utcnow
from app.models.job import Job
from app.models.user import User
from app.services import mailer
from app.services.auth_service import hash_password

PASSWORD = "password123"
ADMIN_KEY = "test-admin-key"

CSRF_RE = re.compile(r'name="csrf_token" value="([^"]+)"')


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture password reset mails instead of queueing them."""
    sent = []
    monkeypatch.setattr(mailer, "send_password_reset", lambda email, token: sent.append((email, token)))
    return sent


async def make_user(db, role="student", email=None, password=PASSWORD, **fields) -> User:
    user = User(
        email=email or f"{role}-{uuid4().hex[:8]}@example.com",
        name=fields.pop("name", f"Test {role.title()}"),
        hashed_password=hash_password(password),
        role=role,
        skills=fields.pop("skills", []),
        **fields,
    )
    db.add(user)
    await db.commit()
    return user


async def make_job(db, company: User, **overrides) -> Job:
    fields = {
        "title": "Backend Engineer",
        "description": "Build and run services.",
        "job_type": "Full-time",
        "location": "Bengaluru",
        "salary": "12 LPA",
        "eligibility": "B.Tech CSE",
        "skills_required": ["python", "sql"],
        "deadline": utcnow() + timedelta(days=1),
        "status": "active",
    }
    fields.update(overrides)
    job = Job(company_id=company.id, company_name=company.company_name or company.name, **fields)
    db.add(job)
    await db.commit()
    return job


@pytest.fixture
async def student(db):
    return await make_user(db, "student", resume="/uploads/student-resume.pdf", branch="CSE", year="4")


@pytest.fixture
async def company(db):
    return await make_user(db, "company", company_name="Acme Corp")


@pytest.fixture
async def other_company(db):
    return await make_user(db, "company", company_name="Globex")


@pytest.fixture
async def admin(db):
    return await make_user(db, "admin")


@pytest.fixture
async def job(db, company):
    return await make_job(db, company)


async def csrf_token(client, path="/auth/login") -> str:
    response = await client.get(path)
    match = CSRF_RE.search(response.text)
    assert match, f"no csrf token on {path}"
    return match.group(1)


async def login(client, user: User, password=PASSWORD, admin_key=None) -> str:
    """Log in through the form and return the session's CSRF token."""
    token = await csrf_token(client)
    data = {"email": user.email, "password": password, "role": user.role, "csrf_token": token}
    if admin_key:
        data["admin_key"] = admin_key
    response = await client.post("/auth/login", data=data)
    assert response.status_code == 303, response.text
    return token
