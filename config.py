import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

probe_url = os.getenv("MINDCASCADE_PROBE_URL", "")
probe_timeout = float(os.getenv("MINDCASCADE_PROBE_TIMEOUT", "60"))
db_path = Path(os.getenv("MINDCASCADE_DB", Path(__file__).parent / "app.db"))
persist = os.getenv("MINDCASCADE_PERSIST", "1").lower() not in ("0", "false", "no")
secret_key = os.getenv("FLASK_SECRET_KEY", "dev-change-this")
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
