from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "ic-workflow-platform"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    database_url: str = "sqlite:///./ic_workflow.db"
    redis_url: str = "redis://localhost:6379/0"

    # Role gates for the HTTP surface and the IC meeting force-advance policy
    advance_roles: list[str] = ["ADMIN", "PM"]
    revert_roles: list[str] = ["ADMIN"]
    force_advance_roles: list[str] = ["PM", "ADMIN"]

    notifications_enabled: bool = True

settings = Settings()
