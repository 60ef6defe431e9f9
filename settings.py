from __future__ import annotations
import os
from dotenv import load_dotenv
from typing import List, Tuple

load_dotenv()  # .env in the working directory, if present


APP_NAME = os.getenv("APP_NAME", "Kundali Engine — Core REST")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() in {"1","true","yes","on"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()  # "debug" | "info" | "warning" | "error"

CORS_ALLOW_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
TRUSTED_HOSTS: List[str] = [h.strip() for h in os.getenv("TRUSTED_HOSTS", "*").split(",") if h.strip()]
GZIP_MIN_SIZE = int(os.getenv("GZIP_MIN_SIZE", "1000"))
REQUEST_LOGGING = os.getenv("REQUEST_LOGGING", "basic").lower()  # "off" | "basic" | "full"

# --- Chart defaults ---
EPHE_PATH = os.getenv("EPHE_PATH", "")  # directory of Swiss .se1 files; "" = built-in Moshier model
DEFAULT_AYANAMSA = os.getenv("DEFAULT_AYANAMSA", "Lahiri")
DEFAULT_HOUSE_SYSTEM = os.getenv("DEFAULT_HOUSE_SYSTEM", "WHOLE_SIGN").upper()
DEFAULT_NODE_TYPE = os.getenv("DEFAULT_NODE_TYPE", "mean").lower()
DEFAULT_DASHA_DEPTH = int(os.getenv("DEFAULT_DASHA_DEPTH", "3"))
DEFAULT_DIVISIONS: Tuple[str, ...] = tuple(
    d.strip().upper() for d in os.getenv("DEFAULT_DIVISIONS", "D9,D10").split(",") if d.strip()
)
CHART_CACHE_SIZE = int(os.getenv("CHART_CACHE_SIZE", "256"))
