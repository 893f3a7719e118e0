import os
from pathlib import Path
from dotenv import load_dotenv

# Point to your actual .env file (change path if needed)
load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[1]
# Bundled CSVs ship inside the services package
DEFAULT_REFERENCE_DATA_DIR = BASE_DIR / "services" / "data"

class Settings:
    # Oracle (any OpenAI-compatible endpoint, OpenRouter by default)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY") or os.getenv("OPENROUTER_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://openrouter.ai/api/v1")
    ORACLE_MODEL: str = os.getenv("ORACLE_MODEL", "deepseek/deepseek-chat")
    SITE_URL: str = os.getenv("SITE_URL", "http://localhost:8000")

    # App
    APP_TITLE: str = os.getenv("APP_TITLE", "Company Profile Matcher")
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Reference data (CSV files)
    REFERENCE_DATA_DIR: Path = Path(os.getenv("REFERENCE_DATA_DIR", str(DEFAULT_REFERENCE_DATA_DIR)))

settings = Settings()
