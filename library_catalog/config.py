import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Catalog")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # Catalog settings
    default_loan_days: int = int(os.getenv("LIBRARY_DEFAULT_LOAN_DAYS", "14"))
    default_genre: str = os.getenv("LIBRARY_DEFAULT_GENRE", "No especificado")
    id_length: int = int(os.getenv("LIBRARY_ID_LENGTH", "7"))


settings = Settings()
