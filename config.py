"""Global configuration for the Timora wellness backend."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Environment ("production" silences dry-run delivery logging)
APP_ENV = os.getenv("APP_ENV", "development")

# Supabase - service role key is server-side only (dispatcher, unsubscribe)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_TIMEOUT_SECONDS = float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "10"))

# OpenAI (coach personas)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))

# Resend email
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_FROM = os.getenv("RESEND_FROM", "Reminders <noreply@example.com>")

# Web Push (VAPID)
WEB_PUSH_SUBJECT = os.getenv("WEB_PUSH_SUBJECT", "mailto:admin@example.com")
WEB_PUSH_PUBLIC_KEY = os.getenv("WEB_PUSH_PUBLIC_KEY")
WEB_PUSH_PRIVATE_KEY = os.getenv("WEB_PUSH_PRIVATE_KEY")

# Reminder dispatcher
DISPATCH_INTERVAL_MINUTES = int(os.getenv("DISPATCH_INTERVAL_MINUTES", "5"))
DISPATCH_BATCH_LIMIT = int(os.getenv("DISPATCH_BATCH_LIMIT", "200"))
DISPATCH_SECRET = os.getenv("DISPATCH_SECRET")

# Reminder ticker
TICK_INTERVAL_SECONDS = int(os.getenv("TICK_INTERVAL_SECONDS", "30"))
DUE_WINDOW_SECONDS = int(os.getenv("DUE_WINDOW_SECONDS", "60"))
# Run the polling ticker inside the worker (local single-user setups)
RUN_REMINDER_TICKER = os.getenv("RUN_REMINDER_TICKER", "false").lower() in ("1", "true", "yes")

# HTTP API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", Path(os.getenv("LOCALAPPDATA", ".")) / "timora" / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
