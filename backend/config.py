"""
Central configuration for the blueprints relay.

All settings loaded from .env file or environment variables.
See .env.example for available options.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from backend directory
load_dotenv(Path(__file__).parent / ".env")

# Listener
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Allowed browser origins (comma-separated)
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
FRONTEND_ORIGINS = [o.strip() for o in FRONTEND_ORIGIN.split(",") if o.strip()]

# Blueprints REST API (authoritative storage)
BLUEPRINTS_API_URL = os.getenv("BLUEPRINTS_API_URL", "http://localhost:8080")
BLUEPRINTS_API_TIMEOUT = float(os.getenv("BLUEPRINTS_API_TIMEOUT", "5.0"))

# Store backend: "http" (blueprints API) or "memory" (in-process, for local runs)
BLUEPRINT_STORE = os.getenv("BLUEPRINT_STORE", "http")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
