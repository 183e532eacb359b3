"""Paths, constants, and HTTP settings."""

from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "ipscope"

# Remote lookup service: GET <base>/[<target>/]json/
LOOKUP_BASE_URL = "https://ipapi.co"

# Local storage
DATA_DIR = Path(user_data_dir(APP_NAME))
DB_PATH = DATA_DIR / "ipscope.db"
HISTORY_KEY = "ip_history"
MAX_HISTORY = 10

# HTTP
USER_AGENT = "ipscope/0.1.0 (+https://github.com/example/ipscope)"
REQUEST_TIMEOUT = None  # no timeout unless --timeout is given

# Display
PLACEHOLDER = "-"
MAP_ZOOM = 13
