import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(dotenv_path=os.path.join(BACKEND_DIR, ".env"))

DEFAULT_JWT_SECRET = "change-me-in-production"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:5174,http://127.0.0.1:5173,http://localhost:3000"


def _split_origins(raw: str) -> tuple[str, ...]:
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url and frontend_url not in origins:
        origins.append(frontend_url)
    return tuple(origins)


@dataclass(frozen=True)
class Settings:
    app_env: str = os.getenv("APP_ENV", "development")
    database_url: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{os.path.join(BACKEND_DIR, 'class_management.db')}"
    )
    jwt_secret: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_exp_days: int = int(os.getenv("JWT_EXP_DAYS", "7"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    otp_exp_minutes: int = int(os.getenv("OTP_EXP_MINUTES", "5"))
    db_max_attempts: int = int(os.getenv("DB_MAX_ATTEMPTS", "3"))
    db_retry_base_delay: float = float(os.getenv("DB_RETRY_BASE_DELAY", "1.0"))
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS))
    )
    superadmin_email: str = os.getenv("SUPERADMIN_EMAIL", "")
    superadmin_password: str = os.getenv("SUPERADMIN_PASSWORD", "")

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


settings = Settings()
