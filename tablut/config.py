"""Runtime settings read from the environment (and a .env file if present)."""

import os

from dotenv import load_dotenv

load_dotenv()

TURN_TIMEOUT = float(os.getenv("TURN_TIMEOUT", "60"))  # seconds
TIMER_INTERVAL = float(os.getenv("TIMER_INTERVAL", "5"))  # seconds between turn_timer pushes
DISCONNECT_GRACE = float(os.getenv("DISCONNECT_GRACE", "60"))  # seconds to reconnect

# Moves allowed per side before the side to move forfeits; 0 disables the limit
MOVE_LIMIT = int(os.getenv("MOVE_LIMIT", "0"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174").split(",")
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
