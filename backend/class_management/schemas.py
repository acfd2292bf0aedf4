from datetime import date as date_type, datetime

from pydantic import BaseModel, ConfigDict, Field

from .models import LessonPlanStatus
from .permissions import Role


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# --- Auth ---

class SendOtpRequest(RequestModel):
    phone_number: str = Field(min_length=1, max_length=32)


class SendOtpResponse(BaseModel):
    message: str
    otp: str | None = None
    development_mode: bool = False


class VerifyOtpRequest(RequestModel):
    phone_number: str = Field(min_length=1, max_length=32)
    otp: str = Field(min_length=4, max_length=10)


class VerifyOtpResponse(BaseModel):
    message: str
    verified: bool


class RegisterRequest(RequestModel):
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=255)
    role: str | None = None
    phone_number: str | None = None
    otp: str | None = None


class LoginRequest(RequestModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class UserOut(OrmModel):
    id: int
    email: str
    name: str
    role: Role
    phone_number: str | None = None
    phone_verified: bool = False
    created_at: datetime


class AuthResponse(BaseModel):
    message: str
    user: UserOut
    token: str


class VerifyResponse(BaseModel):
    user: UserOut


# --- Users ---

class UserCreateRequest(RequestModel):
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=255)
    role: str = Role.STUDENT.value
    phone_number: str | None = None


class UserUpdateRequest(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    phone_number: str | None = None
    password: str | None = Field(default=None, min_length=6)


class RoleChangeRequest(RequestModel):
    role: str


class DemoteRequest(RequestModel):
    role: str | None = None


class UserRoleResponse(BaseModel):
    message: str
    user: UserOut


class SystemStats(BaseModel):
    total_users: int
    superadmins: int
    admins: int
    teachers: int
    students: int
    total_students: int
    total_teachers: int
    total_classes: int
    total_enrollments: int
    total_schools: int
    total_branches: int
    total_lesson_plans: int
    total_messages: int
    timestamp: datetime


# --- Students / Teachers ---

class StudentCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    age: int | None = Field(default=None, gt=0)
    grade: str | None = Field(default=None, max_length=32)
    user_id: int | None = None


class StudentUpdate(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    age: int | None = Field(default=None, gt=0)
    grade: str | None = Field(default=None, max_length=32)
    user_id: int | None = None


class StudentOut(OrmModel):
    id: int
    name: str
    email: str
    age: int | None = None
    grade: str | None = None
    user_id: int | None = None
    created_at: datetime


class TeacherCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    subject: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    user_id: int | None = None


class TeacherUpdate(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    subject: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    user_id: int | None = None


class TeacherOut(OrmModel):
    id: int
    name: str
    email: str
    subject: str | None = None
    phone: str | None = None
    user_id: int | None = None
    created_at: datetime


class TeacherSummary(OrmModel):
    id: int
    name: str
    email: str


# --- Classes / Enrollments ---

class ClassCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=64)
    description: str | None = None
    schedule: str | None = Field(default=None, max_length=255)
    room: str | None = Field(default=None, max_length=64)
    capacity: int | None = Field(default=None, gt=0)
    teacher_id: int | None = None


class ClassUpdate(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    code: str | None = Field(default=None, max_length=64)
    description: str | None = None
    schedule: str | None = Field(default=None, max_length=255)
    room: str | None = Field(default=None, max_length=64)
    capacity: int | None = Field(default=None, gt=0)
    teacher_id: int | None = None


class ClassOut(OrmModel):
    id: int
    name: str
    code: str
    description: str | None = None
    schedule: str | None = None
    room: str | None = None
    capacity: int | None = None
    teacher_id: int | None = None
    teacher: TeacherSummary | None = None
    created_at: datetime


class ClassSummary(OrmModel):
    id: int
    name: str
    code: str


class StudentSummary(OrmModel):
    id: int
    name: str
    email: str


class EnrollmentCreate(RequestModel):
    student_id: int
    class_id: int


class EnrollmentUpdate(RequestModel):
    class_id: int


class EnrollmentOut(OrmModel):
    id: int
    student_id: int
    class_id: int
    enrolled_at: datetime
    student: StudentSummary | None = None
    classroom: ClassSummary | None = None


# --- Schools / Branches ---

class SchoolCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=64)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=255)
    principal: str | None = Field(default=None, max_length=255)
    description: str | None = None


class SchoolUpdate(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    code: str | None = Field(default=None, max_length=64)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=255)
    principal: str | None = Field(default=None, max_length=255)
    description: str | None = None


class BranchSummary(OrmModel):
    id: int
    name: str
    code: str


class SchoolSummary(OrmModel):
    id: int
    name: str
    code: str


class SchoolOut(OrmModel):
    id: int
    name: str
    code: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    principal: str | None = None
    description: str | None = None
    branches: list[BranchSummary] = []
    created_at: datetime


class BranchCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=64)
    school_id: int
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=255)
    manager: str | None = Field(default=None, max_length=255)
    description: str | None = None


class BranchUpdate(RequestModel):
    name: str | None = Field(default=None, max_length=255)
    code: str | None = Field(default=None, max_length=64)
    school_id: int | None = None
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=255)
    manager: str | None = Field(default=None, max_length=255)
    description: str | None = None


class BranchOut(OrmModel):
    id: int
    name: str
    code: str
    school_id: int
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    manager: str | None = None
    description: str | None = None
    school: SchoolSummary | None = None
    created_at: datetime


# --- Lesson plans ---

class LessonPlanCreate(RequestModel):
    title: str = Field(min_length=1, max_length=255)
    date: date_type
    description: str | None = None
    subject: str | None = Field(default=None, max_length=255)
    class_id: int | None = None
    teacher_id: int | None = None
    objectives: str | None = None
    materials: str | None = None
    activities: str | None = None
    homework: str | None = None
    notes: str | None = None
    status: LessonPlanStatus = LessonPlanStatus.DRAFT


class LessonPlanUpdate(RequestModel):
    title: str | None = Field(default=None, max_length=255)
    date: date_type | None = None
    description: str | None = None
    subject: str | None = Field(default=None, max_length=255)
    class_id: int | None = None
    objectives: str | None = None
    materials: str | None = None
    activities: str | None = None
    homework: str | None = None
    notes: str | None = None
    status: LessonPlanStatus | None = None


class LessonPlanOut(OrmModel):
    id: int
    title: str
    date: date_type
    description: str | None = None
    subject: str | None = None
    class_id: int | None = None
    teacher_id: int
    objectives: str | None = None
    materials: str | None = None
    activities: str | None = None
    homework: str | None = None
    notes: str | None = None
    status: LessonPlanStatus
    teacher: TeacherSummary | None = None
    created_at: datetime
    updated_at: datetime


# --- Messages ---

class MessageCreate(RequestModel):
    content: str = Field(min_length=1)
    subject: str | None = Field(default=None, max_length=255)
    recipient_id: int | None = None


class MessageOut(OrmModel):
    id: int
    sender_id: int
    recipient_id: int | None = None
    subject: str | None = None
    content: str
    is_read: bool
    created_at: datetime


# --- Analytics ---

class ClassEnrollmentCount(BaseModel):
    class_id: int
    name: str
    code: str
    enrollments: int


class AnalyticsOverview(BaseModel):
    total_students: int
    total_teachers: int
    total_classes: int
    total_enrollments: int
    average_class_size: float
    top_classes: list[ClassEnrollmentCount]
    lesson_plans_by_status: dict[str, int]
