"""Configuration: env, data paths, binding policy, share/certificate URLs."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of artlink package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so ARTLINK_* overrides are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("ARTLINK_DATA_DIR", str(BASE_DIR / "data")))
RECORDS_PATH = DATA_DIR / "records.json"

# API
API_HOST = os.getenv("ARTLINK_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("ARTLINK_API_PORT", "8000"))
LOG_LEVEL = os.getenv("ARTLINK_LOG_LEVEL", "INFO").upper()

# Record store: "json" (records.json under DATA_DIR) or "memory" (lost on restart)
STORE_BACKEND = os.getenv("ARTLINK_STORE_BACKEND", "json").lower()

# Binding: "overwrite" moves an already-bound tag silently, "reject" refuses
REBIND_POLICY = os.getenv("ARTLINK_REBIND_POLICY", "overwrite").lower()
# Unbind any other tag on the artwork before linking a new one
EXCLUSIVE_BINDING = os.getenv("ARTLINK_EXCLUSIVE_BINDING", "1").lower() in ("1", "true", "yes")

# Slug allocation: how many candidates to try persisting when a concurrent writer wins
SLUG_PERSIST_ATTEMPTS = int(os.getenv("ARTLINK_SLUG_PERSIST_ATTEMPTS", "5"))

# Public links
PROFILE_SHARE_BASE_URL = os.getenv("ARTLINK_PROFILE_SHARE_BASE_URL", "https://app.aetherlabs.art/a")
CERTIFICATE_BASE_URL = os.getenv("ARTLINK_CERTIFICATE_BASE_URL", "https://aetherlabs.app/certificate")
QR_SERVICE_URL = os.getenv(
    "ARTLINK_QR_SERVICE_URL", "https://api.qrserver.com/v1/create-qr-code/?size=300x300&data="
)


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
