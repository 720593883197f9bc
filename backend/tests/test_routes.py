from datetime import timedelta

from sqlalchemy import func, select

from app.models.application import Application
from app.models.base import utcnow
from app.models.job import Job
from app.models.user import User
from app.services import application_service, auth_service

from conftest import ADMIN_KEY, PASSWORD, csrf_token, login, make_job, make_user


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_home_lists_open_jobs(client, job):
    response = await client.get("/")
    assert response.status_code == 200
    assert job.title in response.text


async def test_anonymous_page_redirects_to_login(client):
    response = await client.get("/student/dashboard")
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login"


async def test_anonymous_json_action_gets_401(client, job):
    response = await client.post(f"/student/jobs/{job.id}/apply", json={})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Login required"}


async def test_wrong_role_is_forbidden(client, student, job):
    token = await login(client, student)

    page = await client.get("/company/dashboard")
    assert page.status_code == 403
    assert "Access denied" in page.text

    response = await client.post(
        f"/company/applications/{job.id}/status", json={"status": "hired"}, headers={"X-CSRF-Token": token}
    )
    assert response.status_code == 403
    assert response.json()["success"] is False


async def test_login_redirects_to_role_dashboard(client, company):
    await login(client, company)
    response = await client.get("/dashboard")
    assert response.status_code == 303
    assert response.headers["location"] == "/company/dashboard"
    assert (await client.get("/company/dashboard")).status_code == 200


async def test_login_with_bad_password_rerenders_form(client, student):
    token = await csrf_token(client)
    response = await client.post(
        "/auth/login", data={"email": student.email, "password": "nope", "role": "student", "csrf_token": token}
    )
    assert response.status_code == 401
    assert "Invalid credentials" in response.text


async def test_admin_login_requires_admin_key(client, admin):
    token = await csrf_token(client)
    data = {"email": admin.email, "password": PASSWORD, "role": "admin", "csrf_token": token, "admin_key": "wrong"}
    response = await client.post("/auth/login", data=data)
    assert response.status_code == 401
    assert "Invalid admin key. Access denied." in response.text

    await login(client, admin, admin_key=ADMIN_KEY)
    assert (await client.get("/admin/dashboard")).status_code == 200


async def test_login_without_csrf_token_is_rejected(client, student):
    await client.get("/auth/login")
    response = await client.post("/auth/login", data={"email": student.email, "password": PASSWORD, "role": "student"})
    assert response.status_code == 403
    assert (await client.get("/student/dashboard")).status_code == 303


async def test_register_logs_in_new_student(client, db):
    token = await csrf_token(client, "/auth/register")
    response = await client.post(
        "/auth/register",
        data={
            "name": "New Student",
            "email": "new@example.com",
            "password": PASSWORD,
            "confirm_password": PASSWORD,
            "role": "student",
            "branch": "ME",
            "year": "1",
            "csrf_token": token,
        },
    )
    assert response.status_code == 303
    assert (await client.get("/student/dashboard")).status_code == 200

    logout = await client.post("/auth/logout", data={"csrf_token": token})
    assert logout.status_code == 303
    token = await csrf_token(client, "/auth/register")
    response = await client.post(
        "/auth/register",
        data={"name": "Again", "email": "new@example.com", "password": PASSWORD, "role": "company", "csrf_token": token},
    )
    assert response.status_code == 409
    assert "Email already registered" in response.text


async def test_apply_then_duplicate(client, db, student, job):
    token = await login(client, student)

    response = await client.post(f"/student/jobs/{job.id}/apply", json={}, headers={"X-CSRF-Token": token})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Application submitted successfully"

    again = await client.post(f"/student/jobs/{job.id}/apply", json={}, headers={"X-CSRF-Token": token})
    assert again.status_code == 409
    assert again.json() == {"success": False, "error": "You have already applied to this job"}

    count = (await db.execute(select(func.count(Application.id)))).scalar()
    assert count == 1


async def test_apply_without_csrf_token(client, student, job):
    await login(client, student)
    response = await client.post(f"/student/jobs/{job.id}/apply", json={})
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid request. Please try again."


async def test_apply_after_deadline(client, db, student, company):
    late = await make_job(db, company, deadline=utcnow() - timedelta(hours=2))
    token = await login(client, student)
    response = await client.post(f"/student/jobs/{late.id}/apply", json={}, headers={"X-CSRF-Token": token})
    assert response.status_code == 400
    assert response.json()["error"] == "Application deadline has passed"


async def test_student_job_pages(client, db, student, company, job):
    await make_job(db, company, title="Hidden Closed Role", status="closed")
    await login(client, student)

    listing = await client.get("/student/jobs")
    assert listing.status_code == 200
    assert job.title in listing.text
    assert "Hidden Closed Role" not in listing.text

    detail = await client.get(f"/student/jobs/{job.id}")
    assert detail.status_code == 200
    assert job.description in detail.text


async def test_company_updates_status_of_own_application(client, db, student, company, job):
    application = await application_service.apply(db, student, job.id)
    await db.commit()

    token = await login(client, company)
    when = (utcnow() + timedelta(days=4)).strftime("%Y-%m-%dT%H:%M")
    response = await client.post(
        f"/company/applications/{application.id}/status",
        json={"status": "Shortlisted", "interview_date": when, "interview_mode": "online"},
        headers={"X-CSRF-Token": token},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "shortlisted"}

    row = (
        await db.execute(select(Application.status, Application.interview_mode).where(Application.id == application.id))
    ).one()
    assert row.status == "shortlisted"
    assert row.interview_mode == "Online"

    interviews = await client.get("/company/interviews")
    assert interviews.status_code == 200


async def test_other_company_cannot_update_status(client, db, student, job, other_company):
    application = await application_service.apply(db, student, job.id)
    await db.commit()

    token = await login(client, other_company)
    response = await client.post(
        f"/company/applications/{application.id}/status",
        json={"status": "hired"},
        headers={"X-CSRF-Token": token},
    )
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Not authorized"}

    status = (await db.execute(select(Application.status).where(Application.id == application.id))).scalar()
    assert status == "pending"


async def test_invalid_status_value(client, db, student, company, job):
    application = await application_service.apply(db, student, job.id)
    await db.commit()

    token = await login(client, company)
    response = await client.post(
        f"/company/applications/{application.id}/status",
        json={"status": "accepted"},
        headers={"X-CSRF-Token": token},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid status value"


async def test_company_posts_and_deletes_job(client, db, company):
    token = await login(client, company)
    deadline = (utcnow() + timedelta(days=7)).strftime("%Y-%m-%dT%H:%M")
    response = await client.post(
        "/company/jobs/post",
        data={
            "title": "QA Intern",
            "description": "Test things.",
            "job_type": "internship",
            "location": "Remote",
            "salary": "15000",
            "salary_period": "per month",
            "eligibility": "Any",
            "skills_required": "pytest, selenium",
            "deadline": deadline,
            "csrf_token": token,
        },
    )
    assert response.status_code == 303
    assert response.headers["location"].startswith("/company/jobs")

    job = (await db.execute(select(Job).where(Job.title == "QA Intern"))).scalar_one()
    assert job.salary == "₹15000 per month"
    assert job.company_name == "Acme Corp"

    deleted = await client.delete(f"/company/jobs/{job.id}", headers={"X-CSRF-Token": token})
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    assert (await db.execute(select(func.count(Job.id)))).scalar() == 0


async def test_company_cannot_delete_foreign_job(client, job, other_company):
    token = await login(client, other_company)
    response = await client.delete(f"/company/jobs/{job.id}", headers={"X-CSRF-Token": token})
    assert response.status_code == 404


async def test_nested_impersonation_unwinds_in_order(client, db, admin, student):
    second_admin = await make_user(db, "admin", name="Second Admin")
    await login(client, admin, admin_key=ADMIN_KEY)

    response = await client.get(f"/admin/users/impersonate/{second_admin.id}")
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"

    await client.get(f"/admin/users/impersonate/{student.id}")
    page = await client.get("/student/dashboard")
    assert page.status_code == 200
    assert "You are viewing the portal as" in page.text

    await client.get("/admin/impersonate/stop")
    page = await client.get("/admin/dashboard")
    assert page.status_code == 200
    assert '<span class="navbar-text">Second Admin</span>' in page.text
    assert "You are viewing the portal as" in page.text

    await client.get("/admin/impersonate/stop")
    page = await client.get("/admin/dashboard")
    assert '<span class="navbar-text">Test Admin</span>' in page.text
    assert "You are viewing the portal as" not in page.text

    response = await client.get("/admin/impersonate/stop")
    assert response.status_code == 303
    assert "error=No+impersonation+in+progress" in response.headers["location"]


async def test_admin_cannot_impersonate_self(client, admin):
    await login(client, admin, admin_key=ADMIN_KEY)
    response = await client.get(f"/admin/users/impersonate/{admin.id}")
    assert response.status_code == 303
    assert response.headers["location"].startswith("/admin/users?error=")


async def test_admin_deletes_company_with_cascade(client, db, admin, student, company, job):
    await application_service.apply(db, student, job.id)
    await db.commit()

    token = await login(client, admin, admin_key=ADMIN_KEY)
    response = await client.delete(f"/admin/users/{company.id}", headers={"X-CSRF-Token": token})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "User deleted successfully"}

    assert (await db.execute(select(func.count(Job.id)))).scalar() == 0
    assert (await db.execute(select(func.count(Application.id)))).scalar() == 0
    assert (await db.execute(select(User.id).where(User.id == company.id))).scalar_one_or_none() is None


async def test_admin_toggles_user_status(client, db, admin):
    token = await login(client, admin, admin_key=ADMIN_KEY)

    other = await make_user(db, "student", email="later@example.com")
    response = await client.post(f"/admin/users/{other.id}/toggle-status", data={"csrf_token": token})
    assert response.status_code == 303
    status = (await db.execute(select(User.status).where(User.id == other.id))).scalar()
    assert status == "inactive"


async def test_jobs_api_requires_login(client, student, job):
    response = await client.get("/api/v1/jobs")
    assert response.status_code == 401
    assert response.json()["error"] == "Login required"

    await login(client, student)
    response = await client.get("/api/v1/jobs")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [str(job.id)]

    detail = await client.get(f"/api/v1/jobs/{job.id}")
    assert detail.json()["title"] == job.title


async def test_applications_api_is_student_only(client, db, student, company, job):
    await application_service.apply(db, student, job.id)
    await db.commit()

    await login(client, student)
    response = await client.get("/api/v1/applications")
    assert response.status_code == 200
    [item] = response.json()
    assert item["status"] == "pending"
    assert item["job"]["title"] == job.title


async def test_forgot_and_reset_password(client, db, student, outbox):
    token = await csrf_token(client, "/auth/forgot-password")
    response = await client.post("/auth/forgot-password", data={"email": student.email, "csrf_token": token})
    assert response.status_code == 200
    assert "Password reset link has been sent" in response.text

    [(email, raw_token)] = outbox
    assert email == student.email

    assert (await client.get(f"/auth/reset-password/{raw_token}")).status_code == 200
    response = await client.post(
        f"/auth/reset-password/{raw_token}",
        data={"password": "brand-new-pass", "confirm_password": "brand-new-pass", "csrf_token": token},
    )
    assert response.status_code == 303
    assert response.headers["location"].startswith("/auth/login?success=")

    hashed = (await db.execute(select(User.hashed_password).where(User.id == student.id))).scalar()
    assert auth_service.verify_password("brand-new-pass", hashed)

    reused = await client.get(f"/auth/reset-password/{raw_token}")
    assert reused.status_code == 400
    assert "Invalid or expired reset link" in reused.text


async def test_forgot_password_unknown_email(client, outbox):
    token = await csrf_token(client, "/auth/forgot-password")
    response = await client.post("/auth/forgot-password", data={"email": "ghost@example.com", "csrf_token": token})
    assert response.status_code == 404
    assert "Email not found" in response.text
    assert outbox == []


async def test_resume_upload(client, db):
    student = await make_user(db, "student", email="cv@example.com")
    token = await login(client, student)

    rejected = await client.post(
        "/student/profile/resume",
        data={"csrf_token": token},
        files={"resume": ("cv.txt", b"plain text", "text/plain")},
    )
    assert rejected.status_code == 303
    assert "error=" in rejected.headers["location"]

    response = await client.post(
        "/student/profile/resume",
        data={"csrf_token": token},
        files={"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
    )
    assert response.status_code == 303
    assert "success=" in response.headers["location"]

    resume = (await db.execute(select(User.resume).where(User.id == student.id))).scalar()
    assert resume.startswith("/uploads/") and resume.endswith(".pdf")

    served = await client.get(resume)
    assert served.status_code == 200
    assert served.content == b"%PDF-1.4 resume"


async def test_change_password(client, db, student):
    token = await login(client, student)
    response = await client.post(
        "/account/password",
        data={
            "current_password": "wrong-one",
            "new_password": "another-pass-1",
            "confirm_password": "another-pass-1",
            "csrf_token": token,
        },
    )
    assert response.status_code == 400
    assert "Current password is incorrect" in response.text

    response = await client.post(
        "/account/password",
        data={
            "current_password": PASSWORD,
            "new_password": "another-pass-1",
            "confirm_password": "another-pass-1",
            "csrf_token": token,
        },
    )
    assert response.status_code == 200
    assert "Password updated successfully." in response.text


async def test_admin_login_with_non_ascii_key(client, admin):
    token = await csrf_token(client)
    data = {"email": admin.email, "password": PASSWORD, "role": "admin", "csrf_token": token, "admin_key": "clé"}
    response = await client.post("/auth/login", data=data)
    assert response.status_code == 401
    assert "Invalid admin key. Access denied." in response.text


async def test_non_ascii_csrf_token_is_rejected(client, student):
    await csrf_token(client)
    data = {"email": student.email, "password": PASSWORD, "role": "student", "csrf_token": "jeton-é"}
    response = await client.post("/auth/login", data=data)
    assert response.status_code == 403
    assert "Invalid request. Please try again." in response.text


async def test_login_with_overlong_password(client, student):
    token = await csrf_token(client)
    response = await client.post(
        "/auth/login", data={"email": student.email, "password": "y" * 100, "role": "student", "csrf_token": token}
    )
    assert response.status_code == 401
    assert "Invalid credentials" in response.text


async def test_rejected_logo_leaves_company_profile_unchanged(client, db, company):
    token = await login(client, company)
    response = await client.post(
        "/company/profile",
        data={"company_name": "Renamed Corp", "industry": "Retail", "csrf_token": token},
        files={"logo": ("logo.txt", b"not an image", "text/plain")},
    )
    assert response.status_code == 400
    assert "Please upload an image file" in response.text

    row = (await db.execute(select(User.company_name, User.industry, User.logo).where(User.id == company.id))).one()
    assert row.company_name == "Acme Corp"
    assert row.industry is None
    assert row.logo is None

    response = await client.post(
        "/company/profile",
        data={"company_name": "Renamed Corp", "industry": "Retail", "csrf_token": token},
        files={"logo": ("logo.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 303
    row = (await db.execute(select(User.company_name, User.logo).where(User.id == company.id))).one()
    assert row.company_name == "Renamed Corp"
    assert row.logo.endswith(".png")
