from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    # Database
    database_url: str = Field(default="", alias='DATABASE_URL')
    db_user: str = Field(default="postgres", alias='DB_USER')
    db_host: str = Field(default="localhost", alias='DB_HOST')
    db_password: str = Field(default="", alias='DB_PASSWORD')
    db_port: int = Field(default=5432, alias='DB_PORT')
    db_name: str = Field(default="campaigns", alias='DB_NAME')
    db_pool_min_size: int = Field(default=1, alias='DB_POOL_MIN_SIZE')
    db_pool_max_size: int = Field(default=10, alias='DB_POOL_MAX_SIZE')
    db_command_timeout: float = Field(default=30, alias='DB_COMMAND_TIMEOUT')

    # Identity provider (HS256 access tokens)
    jwt_secret: str = Field(alias='SUPABASE_JWT_SECRET')
    jwt_audience: str = Field(default="authenticated", alias='JWT_AUDIENCE')

    # AWS SES (invitation emails)
    aws_access_key_id: Optional[str] = Field(default=None, alias='AWS_ACCESS_KEY_ID')
    aws_secret_access_key: Optional[str] = Field(default=None, alias='AWS_SECRET_ACCESS_KEY')
    aws_region: Optional[str] = Field(default=None, alias='AWS_REGION')
    aws_ses_from_email: Optional[str] = Field(default=None, alias='AWS_SES_FROM_EMAIL')
    aws_ses_from_name: str = Field(default="Campaign Manager", alias='AWS_SES_FROM_NAME')
    email_signature: str = Field(default="The Campaign Manager team", alias='EMAIL_SIGNATURE')

    # Invitations
    invitation_expiry_days: int = Field(default=30, alias='INVITATION_EXPIRY_DAYS')
    invitation_cleanup_grace_days: int = Field(default=7, alias='INVITATION_CLEANUP_GRACE_DAYS')

    # Admin maintenance endpoints
    admin_api_key: Optional[str] = Field(default=None, alias='ADMIN_API_KEY')

    # App settings
    app_env: str = Field(default="development", alias='APP_ENV')
    environment: str = Field(default="development", alias='NODE_ENV')
    frontend_url: str = Field(default="http://localhost:3000", alias='FRONTEND_URL')

    # FastAPI specific
    port: int = Field(default=8001, alias='FASTAPI_PORT')
    host: str = Field(default="0.0.0.0", alias='FASTAPI_HOST')
    debug: bool = Field(default=True, alias='DEBUG')
    log_level: Optional[str] = Field(default=None, alias='LOG_LEVEL')

    # CORS configuration
    cors_origins: str = Field(default="http://localhost:3000", alias='CORS_ORIGINS')

    # Discord webhooks
    discord_error_webhook_url: Optional[str] = Field(default=None, alias='DISCORD_ERROR_WEBHOOK_URL')

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def db_connection_params(self) -> dict:
        if self.database_url:
            return {"dsn": self.database_url}
        return {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password,
            "database": self.db_name,
        }

    @property
    def is_production(self) -> bool:
        return self.app_env == "production" or self.environment == "production"

    @property
    def email_enabled(self) -> bool:
        return bool(self.aws_region and self.aws_ses_from_email)

settings = Settings()
