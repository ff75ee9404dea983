# courier_app/config/settings.py
from pydantic_settings import BaseSettings
from typing import Optional
import logging
import os

class Settings(BaseSettings):
    # App Info
    app_name: str = "SeeU Cafe Courier"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Backend API
    api_base_url: str = os.getenv("API_BASE_URL", "http://localhost:3000/api")
    request_timeout: float = 30.0

    # Sesión persistida
    session_file: str = os.getenv("SESSION_FILE", ".courier_session.json")
    min_employee_code_length: int = 3

    # Tracking de ubicación
    location_min_interval: float = 5.0  # segundos entre envíos de posición

    # Nota enviada al marcar una entrega como completada
    delivered_note: Optional[str] = "ສົ່ງສຳເລັດແລ້ວ"

    @property
    def api_root(self) -> str:
        """Base URL sin la barra final"""
        return self.api_base_url.rstrip("/")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = 'ignore'


def configure_logging(config: Settings) -> None:
    """Configurar el nivel de logging de la aplicación"""
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

settings = Settings()
