"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # App settings
    app_name: str = "ID Verification API"
    debug: bool = False
    log_level: str = "INFO"
    
    # CORS - marketplace frontend origins
    cors_origins: list[str] = ["*"]
    
    # Request limits (base64 images inflate ~33%, 10MB covers a phone photo)
    max_request_size_mb: int = 10
    
    # OCR engine ("easyocr" or "tesseract"), one instance per request
    ocr_backend: str = "easyocr"
    ocr_lang: str = "en"
    tesseract_lang: str = "eng"
    ocr_model_dir: Optional[str] = None
    ocr_timeout_seconds: float = 30.0
    ocr_max_workers: int = 2
    
    # Preprocessing
    jpeg_quality: int = 85
    contrast_gain: float = 1.2
    contrast_offset: float = 0.0
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
