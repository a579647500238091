from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_db_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL não configurada.")

    # Railway/Heroku: postgres://...
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    # Railway: postgresql://... (sem driver)
    if url.startswith("postgresql://") and "+psycopg2" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)

    return url


class Settings(BaseSettings):
    DATABASE_URL: str

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    SESSION_TTL_HOURS: int = 24

    LOG_LEVEL: str = "INFO"

    # valor nominal de cada parcela por forma de pagamento (R$)
    WEEKLY_INSTALLMENT: int = 50
    BIWEEKLY_INSTALLMENT: int = 100
    MONTHLY_INSTALLMENT: int = 150

    # rota de cobrança
    ROUTE_RADIUS_KM: float = 10.0
    ROUTE_MAX_WAYPOINTS: int = 8

    # metas de produtividade (R$)
    DAILY_GOAL: int = 500
    WEEKLY_GOAL: int = 3000
    MONTHLY_GOAL: int = 12000

    model_config = SettingsConfigDict(
        env_file=".env",         # local
        env_ignore_empty=True,   # evita sobrescrever com vazio
        extra="ignore",
    )

    def __init__(self, **values):
        super().__init__(**values)
        self.DATABASE_URL = normalize_db_url(self.DATABASE_URL)


settings = Settings()
