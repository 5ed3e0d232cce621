"""Read the transit network snapshot from disk or over HTTP.

The snapshot is a GeoJSON FeatureCollection mixing station points
(``stop_type == "station"``) with LineString / MultiLineString lines.
Everything here is blocking; ``transit_network.NetworkRepository`` runs
it off the event loop and caches the result.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import requests

from config import (
    NETWORK_FILE, NETWORK_URL, STATION_STOP_TYPE,
    FETCH_TIMEOUT, FETCH_MAX_RETRIES, FETCH_RETRY_DELAY,
)

logger = logging.getLogger(__name__)

LINE_GEOMETRY_TYPES = ("LineString", "MultiLineString")


class LoadError(Exception):
    """The snapshot could not be fetched or is not a FeatureCollection."""


@dataclass(frozen=True)
class NetworkSnapshot:
    """One parsed FeatureCollection plus where it came from."""

    data: dict = field(repr=False)
    source: str = ""

    @property
    def features(self) -> list:
        return self.data.get("features") or []

    @property
    def station_features(self) -> list:
        return [
            f for f in self.features
            if isinstance(f, dict)
            and (f.get("properties") or {}).get("stop_type") == STATION_STOP_TYPE
        ]

    @property
    def line_features(self) -> list:
        return [
            f for f in self.features
            if isinstance(f, dict)
            and (f.get("geometry") or {}).get("type") in LINE_GEOMETRY_TYPES
        ]


def validate_network(data) -> list[str]:
    """Return a list of structural problems; empty when the root is usable.

    Only the envelope is checked.  Individual malformed features are
    tolerated and skipped later by the topology builder.
    """
    if not isinstance(data, dict):
        return ["root must be a JSON object"]
    errors = []
    if data.get("type") != "FeatureCollection":
        errors.append(f"root type must be 'FeatureCollection', got {data.get('type')!r}")
    if "features" not in data:
        errors.append("missing 'features' array")
    elif not isinstance(data["features"], list):
        errors.append("'features' must be an array")
    return errors


def parse_network(raw, source: str = "") -> NetworkSnapshot:
    """Build a snapshot from JSON text/bytes or an already decoded dict."""
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise LoadError(f"{source or 'network'} is not valid JSON: {e}") from e
    else:
        data = raw

    errors = validate_network(data)
    if errors:
        raise LoadError(f"{source or 'network'} is not a transit FeatureCollection: {'; '.join(errors)}")

    snapshot = NetworkSnapshot(data=data, source=source)
    logger.info(
        f"Loaded {len(snapshot.features)} features from {source or 'memory'} "
        f"({len(snapshot.station_features)} stations, {len(snapshot.line_features)} lines)"
    )
    return snapshot


def read_network_file(path=NETWORK_FILE) -> NetworkSnapshot:
    """Read the bundled snapshot from disk."""
    path = Path(path)
    logger.info(f"Reading network from {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Cannot read network file {path}: {e}") from e
    return parse_network(text, source=str(path))


def fetch_network(url, timeout=FETCH_TIMEOUT, max_retries=FETCH_MAX_RETRIES,
                  retry_delay=FETCH_RETRY_DELAY) -> NetworkSnapshot:
    """Fetch the snapshot over HTTP, retrying on rate limits and timeouts."""
    logger.info(f"Fetching network from {url}")
    last_error = "no attempts made"

    for attempt in range(max_retries):
        try:
            logger.info(f"Attempt {attempt + 1}/{max_retries}")
            response = requests.get(url, timeout=timeout)

            if response.status_code == 200:
                return parse_network(response.text, source=url)
            elif response.status_code == 429:
                logger.warning("Rate limited while fetching network, retrying...")
                last_error = "rate limited"
                time.sleep(retry_delay * (attempt + 1))
            else:
                logger.error(f"Error fetching network: {response.status_code}")
                last_error = f"HTTP {response.status_code}"

        except requests.exceptions.Timeout:
            logger.warning(f"Request timeout on attempt {attempt + 1}, retrying...")
            last_error = "timeout"
            time.sleep(retry_delay)
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error: {e}")
            last_error = str(e)
            if attempt < max_retries - 1:
                time.sleep(retry_delay)

    logger.error("Failed to fetch network after all retries")
    raise LoadError(f"Cannot fetch network from {url}: {last_error}")


def default_fetcher() -> NetworkSnapshot:
    """Use the HTTP endpoint when one is configured, else the bundled file."""
    if NETWORK_URL:
        return fetch_network(NETWORK_URL)
    return read_network_file(NETWORK_FILE)
