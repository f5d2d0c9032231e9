from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lms.config import configure_logging
from lms.errors import LMSError

from lms.routes.auth import router as user_login_router
from lms.routes.certificate import router as certificate_validation_router

from lms.routes.admin.user import router as admin_user_router
from lms.routes.admin.enrollment import router as admin_enrollment_router
from lms.routes.admin.certificate import router as admin_certificate_router

from lms.routes.teacher.course import router as teacher_course_router
from lms.routes.teacher.quiz import router as teacher_quiz_router
from lms.routes.teacher.quiz_submission import router as teacher_quiz_submission_router
from lms.routes.teacher.assignment import router as teacher_assignment_router

from lms.routes.student.enrollment import router as student_enrollment_router
from lms.routes.student.quiz import router as student_quiz_router
from lms.routes.student.assignment_submission import router as student_assignment_router
from lms.routes.student.certificate import router as student_certificate_router


configure_logging()

app = FastAPI(
    title="Learning Management System"
)


@app.exception_handler(LMSError)
async def lms_error_handler(request: Request, exc: LMSError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/")
def root():
    return {
        "message": "Learning Management System is Running!"
    }


app.include_router(user_login_router)
app.include_router(certificate_validation_router)

app.include_router(admin_user_router)
app.include_router(admin_enrollment_router)
app.include_router(admin_certificate_router)

app.include_router(teacher_course_router)
app.include_router(teacher_quiz_router)
app.include_router(teacher_quiz_submission_router)
app.include_router(teacher_assignment_router)

app.include_router(student_enrollment_router)
app.include_router(student_quiz_router)
app.include_router(student_assignment_router)
app.include_router(student_certificate_router)
