from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    api_base_url: str = "https://api.prosign-lis.com"
    api_timeout_seconds: int = 30

    agent_base_url: str = "http://localhost:53821"
    agent_timeout_seconds: int = 120

    pdf_engine: str = "pymupdf"
    pdf_render_scale: float = 1.4

    auth_url: str = ""
    auth_client_id: str = ""
    auth_client_secret: str = ""
    auth_username: str = ""
    auth_password: str = ""
    auth_grant_type: str = "password"
    auth_scope: str = "openid"
