import os
from pathlib import Path

SURVEY_SLUG = os.getenv("SURVEY_SLUG", "career-archetype-v1")
SURVEY_VERSION = int(os.getenv("SURVEY_VERSION", "1"))
_default_questions = Path(__file__).resolve().parents[2] / "questions.json"
QUESTIONS_PATH = Path(os.getenv("QUESTIONS_PATH", str(_default_questions)))
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "").strip() or None
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30"))

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "").strip()

WEBHOOK_URL = os.getenv("WEBHOOK_URL", "").strip()
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "")
WEBHOOK_TIMEOUT_SECONDS = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "5"))

PROMO_POINTS_FIRST = int(os.getenv("PROMO_POINTS_FIRST", "1000"))
PROMO_POINTS_RETAKE = int(os.getenv("PROMO_POINTS_RETAKE", "100"))

DEFAULT_RESPONDENT_NAME = os.getenv("DEFAULT_RESPONDENT_NAME", "Entrepreneur")

# Respondent-side core
FUNNEL_API_BASE_URL = os.getenv("FUNNEL_API_BASE_URL", "http://localhost:8000").rstrip("/")
FUNNEL_API_TIMEOUT_SECONDS = float(os.getenv("FUNNEL_API_TIMEOUT_SECONDS", "10"))
ANALYTICS_FLUSH_DELAY_SECONDS = float(os.getenv("ANALYTICS_FLUSH_DELAY_SECONDS", "3.0"))
