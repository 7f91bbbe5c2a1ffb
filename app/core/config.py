from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite+aiosqlite:///./term_planning.db", alias="DATABASE_URL")

    jwt_secret_key: str = Field("change-me", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Seconds a resolved "current semester" id may be served from memory.
    # Semester creation replaces the entry synchronously regardless of TTL.
    current_semester_cache_ttl_seconds: int = Field(300, alias="CURRENT_SEMESTER_CACHE_TTL_SECONDS")

    # When true, adding/updating a schedule that overlaps another one in the
    # same classroom fails with 409 instead of returning the overlaps.
    block_schedule_conflicts: bool = Field(False, alias="BLOCK_SCHEDULE_CONFLICTS")

    apply_extra_hours_policy: bool = Field(False, alias="APPLY_EXTRA_HOURS_POLICY")
    full_time_employment_type_id: int = Field(1, alias="FULL_TIME_EMPLOYMENT_TYPE_ID")
    adjunct_employment_type_id: int = Field(2, alias="ADJUNCT_EMPLOYMENT_TYPE_ID")
    full_time_hours_threshold: int = Field(40, alias="FULL_TIME_HOURS_THRESHOLD")

    max_class_capacity: int = Field(100, alias="MAX_CLASS_CAPACITY")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
