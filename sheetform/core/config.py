# File: sheetform/core/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    # ---------------------------
    # Meta / Pydantic settings
    # ---------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore unexpected env vars instead of erroring
    )

    # ---------------------------
    # API / Project
    # ---------------------------
    API_V1_STR: str = os.getenv("API_V1_STR", "/api/v1")
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Sheet Form Service")

    # ---------------------------
    # Environment / Logging
    # ---------------------------
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")  # development | staging | production
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ---------------------------
    # Storage (workbook + sidecar sheet configuration)
    # ---------------------------
    DATA_DIR: str = os.getenv("DATA_DIR", "data")
    WORKBOOK_FILENAME: str = os.getenv("WORKBOOK_FILENAME", "user-submissions.xlsx")
    SHEET_CONFIG_FILENAME: str = os.getenv("SHEET_CONFIG_FILENAME", "sheet-configs.json")
    # Hidden id/timestamp/status columns make reloads lossless; off keeps exports to form data only
    STORE_SUBMISSION_METADATA: bool = os.getenv("STORE_SUBMISSION_METADATA", "false").lower() == "true"

    # ---------------------------
    # Security / Auth
    # ---------------------------
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "120"))
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin123")
    AUTH_COOKIE_NAME: str = os.getenv("AUTH_COOKIE_NAME", "auth_token")

    # ---------------------------
    # Derived / Convenience
    # ---------------------------
    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def workbook_path(self) -> Path:
        return Path(self.DATA_DIR) / self.WORKBOOK_FILENAME

    @property
    def sheet_config_path(self) -> Path:
        return Path(self.DATA_DIR) / self.SHEET_CONFIG_FILENAME


settings = Settings()
