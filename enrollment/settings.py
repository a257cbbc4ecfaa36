import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_TIMEOUT_SEC: float = float(os.getenv("REDIS_SOCKET_TIMEOUT_SEC", "5"))

    # Identity backend (registration / OTP / PIN service)
    BACKEND_BASE_URL: str = os.getenv("BACKEND_BASE_URL", "http://localhost:8080/api/v1")
    # A call that has not answered within this window is surfaced as a retryable transport failure
    BACKEND_TIMEOUT_SEC: float = float(os.getenv("BACKEND_TIMEOUT_SEC", "15"))

    # Wizard shape
    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
    PIN_LENGTH: int = int(os.getenv("PIN_LENGTH", "6"))
    OTP_RESEND_COOLDOWN_SEC: int = int(os.getenv("OTP_RESEND_COOLDOWN_SEC", "60"))
    DEFAULT_OTP_CHANNEL: str = os.getenv("DEFAULT_OTP_CHANNEL", "SMS").upper()

    # Transient step store + flow state (server-driven form mode)
    STEP_STORE_TTL_SEC: int = int(os.getenv("STEP_STORE_TTL_SEC", "1800"))
    SESSION_TTL_SEC: int = int(os.getenv("SESSION_TTL_SEC", "1800"))
    FLOW_LOCK_TTL_MS: int = int(os.getenv("FLOW_LOCK_TTL_MS", "20000"))

    # Observability
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    ENABLE_METRICS: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"

    # Admin surface
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

settings = Settings()
