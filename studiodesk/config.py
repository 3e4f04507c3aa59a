import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studiodesk.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Frontend base URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Ledger entries booked from confirmed appointments always land in this category
SERVICE_INCOME_CATEGORY = os.getenv("SERVICE_INCOME_CATEGORY", "Services")

# Display name used when neither the appointment nor its project resolves a client
PLACEHOLDER_CLIENT_NAME = os.getenv("PLACEHOLDER_CLIENT_NAME", "Client")

# When true, the project status aggregator leaves paused/cancelled projects alone
PRESERVE_MANUAL_PROJECT_STATUS = (
    os.getenv("PRESERVE_MANUAL_PROJECT_STATUS", "true").lower() == "true"
)
