import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/netprophet.db")

# Sessions are provisioned by the external auth service
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "netprophet_session")

# Logging
SERVICE_NAME = "netprophet"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() in ("1", "true", "yes")

# Wagers
MIN_BET_AMOUNT = int(os.getenv("MIN_BET_AMOUNT", "1"))
MAX_BET_AMOUNT = int(os.getenv("MAX_BET_AMOUNT", "1000000"))
STARTING_BALANCE = int(os.getenv("STARTING_BALANCE", "0"))
