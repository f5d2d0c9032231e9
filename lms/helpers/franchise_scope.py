from uuid import UUID

from sqlalchemy import or_

from lms.models import Certificate, Course, Enrollment


def enrollment_in_franchise(franchise_id: UUID):
    """Enrollments owned by the franchise directly or through their course."""
    return or_(
        Enrollment.franchise_id == franchise_id,
        Enrollment.course.has(Course.franchise_id == franchise_id),
    )


def course_visible_to_franchise(course: Course, franchise_id: UUID) -> bool:
    # Courses without a franchise are global
    if franchise_id is None or course.franchise_id is None:
        return True
    return course.franchise_id == franchise_id


def certificate_in_franchise(franchise_id: UUID):
    """Certificates owned by the franchise directly or through their course."""
    return or_(
        Certificate.franchise_id == franchise_id,
        Certificate.course.has(Course.franchise_id == franchise_id),
    )
