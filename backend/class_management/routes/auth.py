from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db_session
from ..errors import ValidationFailed
from ..middleware import get_current_user
from ..otp_service import check_phone_otp, issue_phone_otp
from ..permissions import CallerIdentity
from ..schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SendOtpRequest,
    SendOtpResponse,
    UserOut,
    VerifyOtpRequest,
    VerifyOtpResponse,
    VerifyResponse,
)
from ..services import authenticate_user, issue_token, register_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/send-otp", response_model=SendOtpResponse)
def send_otp(payload: SendOtpRequest, db: Session = Depends(get_db_session)):
    otp = issue_phone_otp(db, phone_number=payload.phone_number)
    if settings.is_development:
        return SendOtpResponse(message="OTP sent successfully", otp=otp, development_mode=True)
    return SendOtpResponse(message="OTP sent successfully")


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(payload: VerifyOtpRequest, db: Session = Depends(get_db_session)):
    result = check_phone_otp(db, phone_number=payload.phone_number, otp=payload.otp, consume=False)
    if not result.valid:
        raise ValidationFailed(result.error)
    return VerifyOtpResponse(message="Phone number verified successfully", verified=True)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db_session)):
    user = register_user(
        db,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role,
        phone_number=payload.phone_number,
        otp=payload.otp,
    )
    return AuthResponse(
        message="User registered successfully", user=UserOut.model_validate(user), token=issue_token(user)
    )


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db_session)):
    user = authenticate_user(db, email=payload.email, password=payload.password)
    return AuthResponse(message="Login successful", user=UserOut.model_validate(user), token=issue_token(user))


@router.get("/verify", response_model=VerifyResponse)
def verify(caller: CallerIdentity = Depends(get_current_user)):
    return VerifyResponse(user=UserOut.model_validate(caller.user))


@router.get("/me", response_model=UserOut)
def me(caller: CallerIdentity = Depends(get_current_user)):
    return caller.user
