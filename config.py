# ============================================================================
# config.py - Environment driven settings
# ============================================================================

import os
from pathlib import Path
from dotenv import load_dotenv
from datetime import timedelta

# Load environment variables from .env file
load_dotenv()

# Application settings
APP_NAME = "Ticket Counter Queue Service"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "REST API for issuing, calling and displaying service counter tickets"

# Database configuration
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_USER = os.getenv("DB_USER", "queue")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "")

# Build a MySQL URL when DB_NAME is set, otherwise fall back to a local SQLite file
if DB_NAME and DB_PASSWORD:
    DATABASE_URL = f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}"
elif DB_NAME:
    DATABASE_URL = f"mysql+pymysql://{DB_USER}@{DB_HOST}/{DB_NAME}"
else:
    DATABASE_URL = "sqlite:///./ticket_queue.db"

# Override with direct DATABASE_URL if provided
DATABASE_URL = os.getenv("DATABASE_URL", DATABASE_URL)

# Database settings
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

# Queue settings
# Comma separated origin letters (E = Estadual, M = Municipal). Empty means a
# single jurisdiction deployment with only the N/P classes.
QUEUE_ORIGINS = [o.strip().upper() for o in os.getenv("QUEUE_ORIGINS", "E,M").split(",") if o.strip()]
SERVICE_TIMEZONE = os.getenv("SERVICE_TIMEZONE", "America/Sao_Paulo")
SHIFT_BOUNDARY_HOUR = int(os.getenv("SHIFT_BOUNDARY_HOUR", 12))
DAILY_NORMAL_CAP = int(os.getenv("DAILY_NORMAL_CAP", 400))
SHIFT_NORMAL_CAP = int(os.getenv("SHIFT_NORMAL_CAP", 200))
RATE_LIMIT_SCOPE = os.getenv("RATE_LIMIT_SCOPE", "global").lower()
MAX_BATCH = int(os.getenv("MAX_BATCH", 500))
PRINT_JOB_TTL_SECONDS = int(os.getenv("PRINT_JOB_TTL_SECONDS", 300))

# Security
API_KEY = os.getenv("API_KEY", "your-secure-api-key-here")
API_KEY_FILE = os.getenv("API_KEY_FILE")
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-jwt-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_DELTA = timedelta(hours=12)
PIN_HASH_ROUNDS = int(os.getenv("PIN_HASH_ROUNDS", 10))

# Load API key from file if specified
if API_KEY_FILE and Path(API_KEY_FILE).exists():
    with open(API_KEY_FILE, 'r') as f:
        API_KEY = f.read().strip()

# Server settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# CORS settings
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# Apps configuration
ENABLED_APPS = ["tickets", "operators", "display", "receipts", "system"]
