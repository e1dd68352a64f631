"""
Application settings read from the environment.
A .env file at the project root is loaded first when present.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent
env_path = PROJECT_ROOT / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

APP_NAME = "Catalog API"
APP_VERSION = "1.0.0"

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "catalog")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", PROJECT_ROOT / "uploads"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def environment() -> str:
    return os.getenv("ENVIRONMENT", "development")


def is_production() -> bool:
    return environment() == "production"
