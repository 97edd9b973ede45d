"""
Application configuration.
All settings are loaded from environment variables (or .env).
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Ledger settings loaded from environment variables.

    Суммы везде в минимальных единицах (int). amount_decimals влияет только на отображение.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Игнорировать неизвестные поля из .env
    )

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    cors_origins: str = ""

    # ===========================================
    # DATABASE / REDIS
    # ===========================================
    database_url: str = "sqlite:///./paywall_ledger.db"
    # Redis нужен только для readiness-пробы и cb_storage=redis
    redis_url: str = "redis://localhost:6379/0"

    # ===========================================
    # FEE AUTHORITY
    # ===========================================
    # Владелец и ставка, которыми заполняется строка fee_authority при первом старте.
    fee_authority_owner: str = "platform"
    fee_rate_ppt: int = 50  # parts-per-thousand: 50 = 5%

    # ===========================================
    # LEDGER
    # ===========================================
    refund_period_hours: int = 24
    # True = при рефанде сумма возвращается плательщику через payout-провайдер
    refund_payout_enabled: bool = True
    amount_decimals: int = 6

    # ===========================================
    # PAYOUTS
    # ===========================================
    payout_provider: str = "log"  # log, webhook
    payout_webhook_url: str = ""
    payout_webhook_secret: str = ""
    payout_webhook_timeout: float = 10.0

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30
    cb_storage: str = "memory"  # memory, redis

    # ===========================================
    # HTTP / LOGGING
    # ===========================================
    caller_id_header: str = "X-Caller-Id"
    request_id_header: str = "X-Request-Id"
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("fee_rate_ppt")
    @classmethod
    def validate_fee_rate(cls, v: int) -> int:
        if not 0 <= v <= 1000:
            raise ValueError("fee_rate_ppt must be within 0..1000")
        return v

    @field_validator("refund_period_hours")
    @classmethod
    def validate_refund_period(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("refund_period_hours must be positive")
        return v

    @field_validator("payout_provider", "cb_storage")
    @classmethod
    def normalize_choice(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("payout_provider")
    @classmethod
    def validate_payout_provider(cls, v: str) -> str:
        if v not in ("log", "webhook"):
            raise ValueError(f"Unknown payout_provider: {v}")
        return v

    @field_validator("cb_storage")
    @classmethod
    def validate_cb_storage(cls, v: str) -> str:
        if v not in ("memory", "redis"):
            raise ValueError(f"Unknown cb_storage: {v}")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
