"""
Configuration Module

Loads environment variables and provides configuration constants for the
portal server. Runtime configuration delivered to the client (identity
service keys etc.) is resolved separately by portal.environment.

==============================================================================
FEATURES CONFIGURED IN THIS MODULE:
==============================================================================

1. HOSTING CONTEXT (Feature: environment-resolver)
   - PUBLIC_URL: URL the portal is served under; its host/port/protocol
     decide development / staging / production
   - CONFIG_ORIGIN: where /.well-known/config.json is fetched from
   - SHELL_HTML_PATH: shell document whose meta tags are the last config tier

2. FALLBACK AUTHENTICATION (Feature: temp-auth)
   - FORCE_TEMP_AUTH: skip the hosted identity service entirely
   - CLIENT_STORAGE_DIR: per-client durable storage (session records)

==============================================================================
"""

import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

_HERE = os.path.dirname(os.path.abspath(__file__))

# SQLite (local document store)
SQLITE_DB_PATH = os.getenv("SQLITE_DB_PATH", os.path.join(_HERE, "..", "..", "data", "portal.db"))

# API
API_TITLE = os.getenv("API_TITLE", "Evaluation Portal")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_DEBUG = os.getenv("API_DEBUG", "false").lower() == "true"

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8000").split(",")

# ==============================================================================
# HOSTING CONTEXT (Feature: environment-resolver)
# ==============================================================================
# PUBLIC_URL is classified once at startup:
#   localhost / 127.0.0.1 / *local* / ports 3000,5000,8000,8080 / file: -> development
#   *staging* / *test* / *dev* / *preview*                              -> staging
#   anything else                                                       -> production
# ==============================================================================
PUBLIC_URL = os.getenv("PUBLIC_URL", f"http://localhost:{API_PORT}")
CONFIG_ORIGIN = os.getenv("CONFIG_ORIGIN", PUBLIC_URL)
CONFIG_FETCH_TIMEOUT = float(os.getenv("CONFIG_FETCH_TIMEOUT", "5.0"))
SHELL_HTML_PATH = os.getenv("SHELL_HTML_PATH", os.path.join(_HERE, "..", "portal", "templates", "index.html"))

# ==============================================================================
# IDENTITY SERVICE & FALLBACK AUTH (Feature: temp-auth)
# ==============================================================================
IDENTITY_BASE_URL = os.getenv("IDENTITY_BASE_URL", "https://identitytoolkit.googleapis.com/v1")
IDENTITY_TIMEOUT_SECONDS = float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "10.0"))
FORCE_TEMP_AUTH = os.getenv("FORCE_TEMP_AUTH", "false").lower() == "true"
CLIENT_STORAGE_DIR = os.getenv("CLIENT_STORAGE_DIR", os.path.join(_HERE, "..", "..", "data", "clients"))
CLIENT_COOKIE_NAME = os.getenv("CLIENT_COOKIE_NAME", "portal_client")

# UI
UI_LANGUAGE = os.getenv("UI_LANGUAGE", "ja")

# Invitations expire after a week unless configured otherwise
INVITATION_TTL_DAYS = int(os.getenv("INVITATION_TTL_DAYS", "7"))

# Seed the demo tenant on startup (development only)
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"
