from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db_retry import with_db_retry
from ..models import Classroom, Enrollment, LessonPlan, LessonPlanStatus, Student, Teacher


TOP_CLASSES = 5


@with_db_retry
def overview(db: Session) -> dict:
    total_classes = db.query(Classroom).count()
    total_enrollments = db.query(Enrollment).count()

    enrollment_count = func.count(Enrollment.id).label("enrollments")
    top = (
        db.query(Classroom.id, Classroom.name, Classroom.code, enrollment_count)
        .outerjoin(Enrollment, Enrollment.class_id == Classroom.id)
        .group_by(Classroom.id, Classroom.name, Classroom.code)
        .order_by(enrollment_count.desc(), Classroom.id)
        .limit(TOP_CLASSES)
        .all()
    )

    by_status = {status.value: 0 for status in LessonPlanStatus}
    for status, count in db.query(LessonPlan.status, func.count(LessonPlan.id)).group_by(LessonPlan.status):
        by_status[LessonPlanStatus(status).value] = count

    return {
        "total_students": db.query(Student).count(),
        "total_teachers": db.query(Teacher).count(),
        "total_classes": total_classes,
        "total_enrollments": total_enrollments,
        "average_class_size": round(total_enrollments / total_classes, 2) if total_classes else 0.0,
        "top_classes": [
            {"class_id": row.id, "name": row.name, "code": row.code, "enrollments": row.enrollments} for row in top
        ],
        "lesson_plans_by_status": by_status,
    }
