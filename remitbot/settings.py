import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "replies")

    # Remittance platform
    REMIT_API_BASE: str = os.getenv("REMIT_API_BASE", "https://income-api.copperx.io").rstrip("/")
    REMIT_TIMEOUT_SEC: float = float(os.getenv("REMIT_TIMEOUT_SEC", "10.0"))

    # Telegram transport
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_API_BASE: str = os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org").rstrip("/")
    TELEGRAM_WEBHOOK_SECRET: str = os.getenv("TELEGRAM_WEBHOOK_SECRET", "")
    TELEGRAM_TIMEOUT_SEC: float = float(os.getenv("TELEGRAM_TIMEOUT_SEC", "5.0"))
    # Modes:
    # - "inline": send replies from the webhook request itself
    # - "rq": enqueue one delivery job per event
    REPLY_DELIVERY_MODE: str = os.getenv("REPLY_DELIVERY_MODE", "inline").lower()
    REPLY_MAX_ATTEMPTS: int = int(os.getenv("REPLY_MAX_ATTEMPTS", "3"))

    # Per-chat serialization
    # 0 derives the lease from REMIT_TIMEOUT_SEC (see utils/lock.py)
    SESSION_LOCK_TTL_MS: int = int(os.getenv("SESSION_LOCK_TTL_MS", "0"))
    SESSION_LOCK_SPINS: int = int(os.getenv("SESSION_LOCK_SPINS", "20"))

    # Minimum amounts (USDC) per operation. The stepwise deposit, the one-line
    # /deposit command and /withdrawWallet historically used different floors.
    DEPOSIT_MIN_AMOUNT: float = float(os.getenv("DEPOSIT_MIN_AMOUNT", "1"))
    DEPOSIT_QUICK_MIN_AMOUNT: float = float(os.getenv("DEPOSIT_QUICK_MIN_AMOUNT", "10"))
    WITHDRAW_MIN_AMOUNT: float = float(os.getenv("WITHDRAW_MIN_AMOUNT", "1"))

    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USDC")
    DEFAULT_PURPOSE_CODE: str = os.getenv("DEFAULT_PURPOSE_CODE", "self")
    DEFAULT_SOURCE_OF_FUNDS: str = os.getenv("DEFAULT_SOURCE_OF_FUNDS", "salary")
    DEFAULT_RECIPIENT_RELATIONSHIP: str = os.getenv("DEFAULT_RECIPIENT_RELATIONSHIP", "self")

    TRANSFER_PAGE_LIMIT: int = int(os.getenv("TRANSFER_PAGE_LIMIT", "5"))
    KYC_PORTAL_URL: str = os.getenv("KYC_PORTAL_URL", "https://payout.copperx.io")

    # Observability
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    ENABLE_METRICS: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

settings = Settings()
