# config.py

import os

# --- Backend ---
GENERATION_SERVICE_URL = os.environ.get("GENERATION_SERVICE_URL", "http://localhost:8000")
GENERATE_PATH = "/generate_ppt"
REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "60"))

# --- Form limits ---
MIN_SLIDES = 3
MAX_SLIDES = 20
DEFAULT_SLIDES = 5
DEFAULT_FILENAME_SUFFIX = "_presentation.pptx"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# --- Delivery ---
# "immediate": save fires as soon as the deck arrives.
# "deferred": the app switches to a download page holding the deck.
DELIVERY_MODE = os.environ.get("DELIVERY_MODE", "deferred")
MAX_DELIVERY_HANDLES = int(os.environ.get("MAX_DELIVERY_HANDLES", "16"))

# --- Logging ---
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - %(message)s'
