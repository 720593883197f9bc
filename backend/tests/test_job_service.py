from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.models.application import Application
from app.models.base import utcnow
from app.models.job import Job, JobType
from app.schemas import JobForm, parse_form
from app.services import application_service, job_service
from app.services.errors import NotFound, ValidationError

from conftest import make_job, make_user


def job_form(**overrides):
    data = {
        "title": "Data Analyst",
        "description": "Crunch numbers.",
        "job_type": "internship",
        "location": "Pune",
        "salary": "25000",
        "eligibility": "Any branch",
        "skills_required": "sql, excel, ",
        "deadline": (utcnow() + timedelta(days=10)).strftime("%Y-%m-%dT%H:%M"),
        "csrf_token": "ignored",
    }
    data.update(overrides)
    return parse_form(JobForm, data)


def test_job_form_folds_optional_fields():
    form = job_form(
        responsibilities="Build reports",
        benefits="Free lunch",
        salary_period="per month",
        min_cgpa="7.5",
    )
    fields = form.to_fields()

    assert fields["job_type"] == JobType.internship.value
    assert fields["skills_required"] == ["sql", "excel"]
    assert fields["salary"] == "₹25000 per month"
    assert fields["eligibility"] == "Any branch (Min CGPA: 7.5)"
    assert "Responsibilities:\nBuild reports" in fields["description"]
    assert "Benefits:\nFree lunch" in fields["description"]
    assert fields["status"] == "active"
    assert fields["deadline"].tzinfo is not None


@pytest.mark.parametrize("slug, expected", [("full-time", "Full-time"), ("Part-Time", "Part-time"), ("Internship", "Internship")])
def test_job_type_slugs(slug, expected):
    assert job_form(job_type=slug).to_fields()["job_type"] == expected


def test_job_form_reports_missing_fields():
    with pytest.raises(ValidationError, match="Title"):
        job_form(title="")


async def test_create_job_uses_company_name(db, company):
    job = await job_service.create_job(db, company, job_form())
    assert job.company_name == "Acme Corp"
    assert job.company_id == company.id


async def test_only_companies_post_jobs(db, student):
    with pytest.raises(ValidationError):
        await job_service.create_job(db, student, job_form())


async def test_students_only_see_active_jobs_before_deadline(db, company):
    open_job = await make_job(db, company, title="Open")
    await make_job(db, company, title="Closed", status="closed")
    expired = await make_job(db, company, title="Expired", deadline=utcnow() - timedelta(minutes=5))

    visible = await job_service.list_jobs(db, visible_only=True)
    assert [job.id for job in visible] == [open_job.id]

    assert (await job_service.get_visible_job(db, open_job.id)).id == open_job.id
    with pytest.raises(NotFound, match="no longer active"):
        await job_service.get_visible_job(db, expired.id)


async def test_search_escapes_wildcards(db, company):
    await make_job(db, company, title="100% Remote Engineer")
    await make_job(db, company, title="Onsite Engineer")

    assert [j.title for j in await job_service.list_jobs(db, search="100%")] == ["100% Remote Engineer"]
    assert len(await job_service.list_jobs(db, search="engineer")) == 2
    assert await job_service.list_jobs(db, search="_") == []


async def test_company_cannot_touch_another_companys_job(db, job, other_company):
    with pytest.raises(NotFound):
        await job_service.get_job(db, job.id, company_id=other_company.id)
    with pytest.raises(NotFound):
        await job_service.update_job(db, job.id, job_form(), company_id=other_company.id)
    with pytest.raises(NotFound):
        await job_service.delete_job(db, job.id, company_id=other_company.id)


async def test_update_job_can_close_and_reopen(db, company, job):
    await job_service.update_job(db, job.id, job_form(status="closed"), company_id=company.id)
    assert job.status == "closed"
    await job_service.update_job(db, job.id, job_form(status="active"), company_id=company.id)
    assert job.status == "active"


async def test_delete_job_removes_its_applications(db, student, company, job):
    keep = await make_job(db, company, title="Keep")
    await application_service.apply(db, student, job.id)
    await application_service.apply(db, student, keep.id)
    await db.commit()

    await job_service.delete_job(db, job.id, company_id=company.id)
    await db.commit()

    assert (await db.execute(select(Job.id).where(Job.id == job.id))).scalar_one_or_none() is None
    remaining = (await db.execute(select(Application.job_id))).scalars().all()
    assert remaining == [keep.id]


async def test_application_counts(db, company, job):
    for i in range(3):
        student = await make_user(db, "student", resume=f"/uploads/r{i}.pdf")
        await application_service.apply(db, student, job.id)
    await db.commit()

    empty = await make_job(db, company)
    counts = await job_service.application_counts(db, [job.id, empty.id])
    assert counts == {job.id: 3}
    assert await job_service.count_jobs(db, company_id=company.id) == 2
    assert (await db.execute(select(func.count(Application.id)))).scalar() == 3


async def test_missing_job(db):
    with pytest.raises(NotFound, match="Job not found"):
        await job_service.get_job(db, uuid4())
