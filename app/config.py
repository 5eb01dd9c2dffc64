from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Unset means "no database": reads degrade, mutations fail.
    DATABASE_URL: str | None = None
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # The identity token of the site owner; upserting it grants admin.
    OWNER_OPEN_ID: str = ""

    # Storage-unavailable policy for read operations.
    DEGRADE_READS_WITHOUT_DB: bool = True

    # Whether non-admin callers may fetch drafts by id or slug.
    EXPOSE_DRAFTS_BY_LOOKUP: bool = False

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Stats
    RECENT_ARTICLES_LIMIT: int = 5

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
