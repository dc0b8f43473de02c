"""Configuration module for the school administration service.

This module provides centralized configuration management, including directory
paths, database settings, API server settings, session settings and the
temporary admin defaults. All configuration values can be overridden via
environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/school_admin.db"
)

# Upper bound (seconds) on waiting for a connection or a database lock
DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "10"))

# Extra attempts for read queries that hit a transient OperationalError
READ_RETRY_ATTEMPTS: int = int(os.getenv("READ_RETRY_ATTEMPTS", "2"))

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Session / Token Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

ACCESS_TOKEN_COOKIE_NAME: str = os.getenv("ACCESS_TOKEN_COOKIE_NAME", "access_token")
REFRESH_TOKEN_COOKIE_NAME: str = os.getenv("REFRESH_TOKEN_COOKIE_NAME", "refresh_token")

# Where the request gate sends signed-out users
SIGN_IN_PATH: str = os.getenv("SIGN_IN_PATH", "/sign-in")

# --- Role Configuration ---

ROLE_ADMIN = "admin"
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
ROLE_PARENT = "parent"
ROLE_TEMP_ADMIN = "temp_admin"

SUPPORTED_ROLES: List[str] = [ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT, ROLE_PARENT]

# --- Temporary Admin Configuration ---

# Shared secret for the scheduled cleanup endpoint. Unset disables the endpoint.
CLEANUP_TOKEN: Optional[str] = os.getenv("CLEANUP_TOKEN")

TEMP_ADMIN_PASSWORD_LENGTH = 16

# Actor recorded on automatic revocations
SYSTEM_ACTOR = "SYSTEM"

REVOKE_REASON_EXPIRED = "Expired"
REVOKE_REASON_CLEANUP = "Expired - Auto cleanup"
