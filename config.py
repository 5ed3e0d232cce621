# config.py — MRT routing configuration
# Edit this file to change the network source, matching tolerances, etc.

import os

# ── Network source ───────────────────────────────────────────────────
# Bundled snapshot, read when no URL is configured.
NETWORK_FILE = "sgmrt.geojson"

# HTTP endpoint serving the same FeatureCollection.  When the environment
# provides one, the loader fetches over HTTP instead of reading NETWORK_FILE.
NETWORK_URL = os.environ.get("SGMRT_NETWORK_URL") or None

FETCH_TIMEOUT = 30
FETCH_MAX_RETRIES = 3
FETCH_RETRY_DELAY = 5

# ── Features ─────────────────────────────────────────────────────────
# Point features carry stop_type; only this value marks a station
# (entrances, exits etc. are ignored).
STATION_STOP_TYPE = "station"

# ── Station / line matching ──────────────────────────────────────────
# Max distance (km) between a station and a line's geometry for the
# station to count as served by that line (~500 m).
STATION_MATCH_TOLERANCE_KM = 0.5

# A station projected this close (km) to a line vertex is placed on the
# vertex itself (~1 m).
VERTEX_SNAP_KM = 0.001

# Fallback when the proximity test fails: station code prefix -> pattern
# that the line's display name must match (case-insensitive).
LINE_CODE_PATTERNS = {
    "NS": r"(north.*south|north[-\s]?south)",
    "EW": r"(east.*west|east[-\s]?west)",
    "CC": r"\bcircle\b",
    "DT": r"\bdowntown\b",
    "NE": r"(north.*east|northeast)",
    "TE": r"(thomson.*east.*coast|thomson[-\s]?east.*coast|thomson)",
    "CR": r"(cross.*island|cross[-\s]?island)",
    "CE": r"circle|extension|ce",
}

# ── Travel time ──────────────────────────────────────────────────────
# Nominal train speed; transfers are instant.
TRAIN_SPEED_KMPH = 30

# ── LRT stripping (network_tools.py) ─────────────────────────────────
LRT_NETWORK = "singapore-lrt"
LRT_CODE_PREFIXES = ("BP", "PE", "SE", "SW")
# Colour token the LRT contributes to station_colors
LRT_STATION_COLOR = "gray"
