from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from lms.models import Certificate, Enrollment, EnrollmentStatus, UserRole


@pytest.fixture
async def franchise_setup(seed):
    north = await seed.franchise("North")
    south = await seed.franchise("South")
    admin = await seed.user(UserRole.ADMIN, franchise_id=north.id)
    super_admin = await seed.user(UserRole.ADMIN, super_admin=True)
    teacher = await seed.user(UserRole.INSTRUCTOR, franchise_id=north.id)

    north_course = await seed.course(teacher, franchise_id=north.id)
    south_course = await seed.course(teacher, franchise_id=south.id)

    students = [await seed.user(UserRole.STUDENT, franchise_id=north.id) for _ in range(2)]
    north_enrollments = [await seed.enrollment(s, north_course, franchise_id=north.id) for s in students]
    south_enrollment = await seed.enrollment(
        await seed.user(UserRole.STUDENT, franchise_id=south.id), south_course, franchise_id=south.id
    )
    return {
        "north": north,
        "south": south,
        "admin": admin,
        "super_admin": super_admin,
        "teacher": teacher,
        "north_course": north_course,
        "south_course": south_course,
        "students": students,
        "north_enrollments": north_enrollments,
        "south_enrollment": south_enrollment,
    }


async def count_certificates(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count(Certificate.id)))


async def test_franchise_admin_only_sees_own_enrollments(client, franchise_setup, headers_for):
    response = await client.get(
        "/admin/enrollment/list-enrollments", headers=headers_for(franchise_setup["admin"])
    )
    ids = {e["id"] for e in response.json()}
    assert ids == {str(e.id) for e in franchise_setup["north_enrollments"]}


async def test_super_admin_picks_franchise_by_header(client, franchise_setup, headers_for):
    super_admin = franchise_setup["super_admin"]

    everything = await client.get("/admin/enrollment/list-enrollments", headers=headers_for(super_admin))
    assert len(everything.json()) == 3

    south_only = await client.get(
        "/admin/enrollment/list-enrollments",
        headers=headers_for(super_admin, franchise_id=franchise_setup["south"].id),
    )
    assert [e["id"] for e in south_only.json()] == [str(franchise_setup["south_enrollment"].id)]


async def test_manual_complete_issues_certificate(client, franchise_setup, headers_for):
    enrollment = franchise_setup["north_enrollments"][0]

    response = await client.post(
        f"/admin/enrollment/complete/{enrollment.id}",
        json={"completion_date": "2026-03-01T10:00:00+00:00"},
        headers=headers_for(franchise_setup["admin"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["progress_percentage"] == 100
    assert body["certificate_outcome"] == "issued"

    issued = await client.post(
        "/admin/certificate/issue",
        json={"student_id": str(enrollment.student_id), "course_id": str(enrollment.course_id)},
        headers=headers_for(franchise_setup["admin"]),
    )
    assert issued.json()["outcome"] == "already_issued"


async def test_bulk_complete_and_incomplete(client, franchise_setup, session_factory, headers_for):
    admin = franchise_setup["admin"]
    ids = [str(e.id) for e in franchise_setup["north_enrollments"]]

    completed = await client.post(
        "/admin/enrollment/bulk-complete",
        json={"enrollment_ids": ids},
        headers=headers_for(admin),
    )
    assert completed.json()["updated"] == 2
    assert completed.json()["certificates_issued"] == 2
    assert await count_certificates(session_factory) == 2

    stats = await client.get("/admin/enrollment/stats", headers=headers_for(admin))
    assert stats.json() == {
        "total_enrollments": 2,
        "active_enrollments": 0,
        "completed_enrollments": 2,
        "certificates_issued": 2,
    }

    reset = await client.post(
        "/admin/enrollment/bulk-incomplete",
        json={"enrollment_ids": ids},
        headers=headers_for(admin),
    )
    assert reset.json()["updated"] == 2
    assert reset.json()["certificates_removed"] == 2
    assert await count_certificates(session_factory) == 0

    listing = await client.get(
        "/admin/enrollment/list-enrollments",
        params={"status": EnrollmentStatus.ACTIVE.value},
        headers=headers_for(admin),
    )
    assert all(e["progress_percentage"] == 0 and e["completed_at"] is None for e in listing.json())
    assert len(listing.json()) == 2


async def test_bulk_complete_outside_scope_changes_nothing(client, franchise_setup, session_factory, headers_for):
    ids = [
        str(franchise_setup["north_enrollments"][0].id),
        str(franchise_setup["south_enrollment"].id),
    ]

    response = await client.post(
        "/admin/enrollment/bulk-complete",
        json={"enrollment_ids": ids},
        headers=headers_for(franchise_setup["admin"]),
    )
    assert response.status_code == 404

    listing = await client.get(
        "/admin/enrollment/list-enrollments",
        params={"status": "completed"},
        headers=headers_for(franchise_setup["super_admin"]),
    )
    assert listing.json() == []
    assert await count_certificates(session_factory) == 0


async def test_generate_missing_certificates_endpoint(client, seed, franchise_setup, headers_for):
    for enrollment in franchise_setup["north_enrollments"]:
        async with seed.session_factory() as session:
            row = await session.get(Enrollment, enrollment.id)
            row.status = EnrollmentStatus.COMPLETED
            row.progress_percentage = 100
            row.completed_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
            await session.commit()

    headers = headers_for(franchise_setup["admin"])
    first = await client.post("/admin/certificate/generate-missing", headers=headers)
    assert first.json() == {"total": 2, "generated": 2, "skipped_existing": 0, "skipped_disabled": 0}

    second = await client.post("/admin/certificate/generate-missing", headers=headers)
    assert second.json()["generated"] == 0
    assert second.json()["skipped_existing"] == 2


async def test_admin_creates_user_in_own_franchise(client, franchise_setup, headers_for):
    admin = franchise_setup["admin"]

    response = await client.post(
        "/admin/create-user",
        json={
            "role": "student",
            "name": "New Student",
            "email": "new.student@example.com",
            "password": "s3cret-pass",
            "franchise_id": str(franchise_setup["south"].id),
        },
        headers=headers_for(admin),
    )
    assert response.status_code == 201
    assert response.json()["franchise_id"] == str(franchise_setup["north"].id)

    users = await client.get("/admin/list-users", params={"role": "student"}, headers=headers_for(admin))
    emails = {u["email"] for u in users.json()}
    assert "new.student@example.com" in emails
    assert all(u["franchise_id"] == str(franchise_setup["north"].id) for u in users.json())


async def test_franchise_admin_cannot_create_super_admin(client, franchise_setup, headers_for):
    response = await client.post(
        "/admin/create-user",
        json={
            "role": "admin",
            "name": "Boss",
            "email": "boss@example.com",
            "password": "pw",
            "super_admin": True,
        },
        headers=headers_for(franchise_setup["admin"]),
    )
    assert response.status_code == 403


async def test_non_admin_is_rejected(client, seed, headers_for):
    student = await seed.user(UserRole.STUDENT)
    response = await client.get("/admin/enrollment/stats", headers=headers_for(student))
    assert response.status_code == 403


async def certificate_for(enrollment, session_factory):
    async with session_factory() as session:
        return await session.scalar(
            select(Certificate).where(
                Certificate.student_id == enrollment.student_id,
                Certificate.course_id == enrollment.course_id,
            )
        )


async def test_completion_date_update_redates_certificate(client, franchise_setup, session_factory, headers_for):
    enrollment = franchise_setup["north_enrollments"][0]
    headers = headers_for(franchise_setup["admin"])
    await client.post(
        f"/admin/enrollment/complete/{enrollment.id}",
        json={"completion_date": "2026-03-01T10:00:00+00:00"},
        headers=headers,
    )

    response = await client.patch(
        f"/admin/enrollment/completion-date/{enrollment.id}",
        json={"completion_date": "2026-04-02T08:00:00+00:00"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["completed_at"].startswith("2026-04-02")
    certificate = await certificate_for(enrollment, session_factory)
    assert certificate.issued_at.date() == date(2026, 4, 2)


async def test_completion_date_update_outside_scope_is_not_found(client, franchise_setup, headers_for):
    response = await client.patch(
        f"/admin/enrollment/completion-date/{franchise_setup['south_enrollment'].id}",
        json={"completion_date": "2026-04-02T08:00:00+00:00"},
        headers=headers_for(franchise_setup["admin"]),
    )
    assert response.status_code == 404


async def test_manual_complete_with_new_date_redates_existing_certificate(
    client, franchise_setup, session_factory, headers_for
):
    enrollment = franchise_setup["north_enrollments"][0]
    headers = headers_for(franchise_setup["admin"])
    await client.post(
        f"/admin/enrollment/complete/{enrollment.id}",
        json={"completion_date": "2026-03-01T10:00:00+00:00"},
        headers=headers,
    )

    again = await client.post(
        f"/admin/enrollment/complete/{enrollment.id}",
        json={"completion_date": "2026-05-20T10:00:00+00:00"},
        headers=headers,
    )

    assert again.json()["certificate_outcome"] == "already_issued"
    certificate = await certificate_for(enrollment, session_factory)
    assert certificate.issued_at.date() == date(2026, 5, 20)


async def test_bulk_update_dates(client, franchise_setup, session_factory, headers_for):
    enrollments = franchise_setup["north_enrollments"]
    ids = [str(e.id) for e in enrollments]
    headers = headers_for(franchise_setup["admin"])
    await client.post(
        "/admin/enrollment/bulk-complete",
        json={"enrollment_ids": ids, "completion_date": "2026-03-01T10:00:00+00:00"},
        headers=headers,
    )

    nothing = await client.post(
        "/admin/enrollment/bulk-update-dates", json={"enrollment_ids": ids}, headers=headers,
    )
    assert nothing.json()["updated"] == 0

    response = await client.post(
        "/admin/enrollment/bulk-update-dates",
        json={
            "enrollment_ids": ids,
            "enrollment_date": "2026-01-10T09:00:00+00:00",
            "completion_date": "2026-06-30T09:00:00+00:00",
        },
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["updated"] == 2
    async with session_factory() as session:
        rows = (await session.execute(select(Enrollment).where(Enrollment.id.in_([e.id for e in enrollments])))).scalars().all()
    assert {row.enrolled_at.date() for row in rows} == {date(2026, 1, 10)}
    assert {row.completed_at.date() for row in rows} == {date(2026, 6, 30)}
    for enrollment in enrollments:
        certificate = await certificate_for(enrollment, session_factory)
        assert certificate.issued_at.date() == date(2026, 6, 30)


async def test_admin_enrolls_student_by_email(client, seed, franchise_setup, headers_for):
    headers = headers_for(franchise_setup["admin"])
    student = await seed.user(UserRole.STUDENT, franchise_id=franchise_setup["north"].id)
    payload = {"student_email": student.email, "course_id": str(franchise_setup["north_course"].id)}

    response = await client.post("/admin/enrollment/enroll", json=payload, headers=headers)
    assert response.status_code == 201
    assert response.json()["student_id"] == str(student.id)
    assert response.json()["franchise_id"] == str(franchise_setup["north"].id)

    duplicate = await client.post("/admin/enrollment/enroll", json=payload, headers=headers)
    assert duplicate.status_code == 400

    unknown = await client.post(
        "/admin/enrollment/enroll",
        json={"student_email": "nobody@example.com", "course_id": payload["course_id"]},
        headers=headers,
    )
    assert unknown.status_code == 404


async def test_admin_cannot_enroll_across_franchises(client, seed, franchise_setup, headers_for):
    headers = headers_for(franchise_setup["admin"])
    north_student = await seed.user(UserRole.STUDENT, franchise_id=franchise_setup["north"].id)
    south_student = await seed.user(UserRole.STUDENT, franchise_id=franchise_setup["south"].id)

    other_course = await client.post(
        "/admin/enrollment/enroll",
        json={"student_email": north_student.email, "course_id": str(franchise_setup["south_course"].id)},
        headers=headers,
    )
    assert other_course.status_code == 403

    other_student = await client.post(
        "/admin/enrollment/enroll",
        json={"student_email": south_student.email, "course_id": str(franchise_setup["north_course"].id)},
        headers=headers,
    )
    assert other_student.status_code == 403


async def test_bulk_enroll_reports_each_pair(client, seed, franchise_setup, session_factory, headers_for):
    already = franchise_setup["students"][0]
    newcomer = await seed.user(UserRole.STUDENT, franchise_id=franchise_setup["north"].id)

    response = await client.post(
        "/admin/enrollment/bulk-enroll",
        json={
            "student_ids": [str(already.id), str(newcomer.id)],
            "course_ids": [str(franchise_setup["north_course"].id), str(franchise_setup["south_course"].id)],
        },
        headers=headers_for(franchise_setup["admin"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 4
    assert body["success"] == 1
    assert body["already_enrolled"] == 1
    assert body["failed"] == 2
    assert {e["error"] for e in body["errors"]} == {"Course not in franchise"}

    async with session_factory() as session:
        enrolled = await session.scalar(
            select(func.count(Enrollment.id)).where(Enrollment.student_id == newcomer.id)
        )
    assert enrolled == 1


async def test_stats_count_certificates_through_the_course(client, seed, franchise_setup, headers_for):
    enrollment = franchise_setup["north_enrollments"][0]
    # Certificate rows issued before franchises existed carry no franchise of their own
    await seed.add(Certificate(
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        franchise_id=None,
        certificate_number="CERT-2025-LEGACY0001",
    ))

    north = await client.get("/admin/enrollment/stats", headers=headers_for(franchise_setup["admin"]))
    assert north.json()["certificates_issued"] == 1
    assert north.json()["total_enrollments"] == 2

    south = await client.get(
        "/admin/enrollment/stats",
        headers=headers_for(franchise_setup["super_admin"], franchise_id=franchise_setup["south"].id),
    )
    assert south.json()["certificates_issued"] == 0
