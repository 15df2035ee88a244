"""Runtime configuration for the CaseComp admin backend."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env.local wins over .env, and both lose to the real environment
_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(_ROOT / ".env.local")
load_dotenv(_ROOT / ".env")

# Supabase (relational store + object storage)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# OpenAI text shortening; absence of the key disables the feature
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", "5"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
BULK_BATCH_MAX_AGE_HOURS = int(os.getenv("BULK_BATCH_MAX_AGE_HOURS", "24"))

FALLBACK_WARNING = (
    "Supabase environment variables are missing. Running in fallback mode: "
    "records cannot be loaded or saved."
)


def is_store_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)


def is_openai_configured() -> bool:
    return bool(OPENAI_API_KEY)
