#!/usr/bin/env python3
"""
network_tools.py — maintenance for the bundled network snapshot.

Usage:
    python3 network_tools.py --stats                 # feature counts per network
    python3 network_tools.py --strip-lrt             # remove LRT, rewrite in place
    python3 network_tools.py --input other.geojson --strip-lrt --output out.geojson
"""

import argparse
import copy
import json
import logging
import shutil
from pathlib import Path

from config import NETWORK_FILE, LRT_NETWORK, LRT_CODE_PREFIXES, LRT_STATION_COLOR
from network_loader import LoadError, read_network_file

logger = logging.getLogger(__name__)


def network_counts(data: dict) -> list[tuple[str, int]]:
    """Feature count per ``network`` property, most common first."""
    counts: dict[str, int] = {}
    for feat in data.get("features") or []:
        props = (feat or {}).get("properties") or {}
        network = props.get("network") or "unknown"
        counts[network] = counts.get(network, 0) + 1
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)


def _is_lrt_code(code: str) -> bool:
    return code.strip().startswith(LRT_CODE_PREFIXES)


def _strip_shared_feature(feat: dict) -> dict | None:
    """Remove the LRT part of a feature shared with another network.

    Returns None when the feature is a shared line, which belongs to the
    LRT as a whole and is dropped.
    """
    props = feat["properties"]
    parts = [p for p in props["network"].split(".") if p != LRT_NETWORK]
    props["network"] = ".".join(parts)

    if isinstance(props.get("network_count"), int):
        props["network_count"] = max(0, props["network_count"] - 1)
        if props["network_count"] == 0:
            del props["network_count"]

    if props.get("station_codes"):
        codes = [c for c in props["station_codes"].split("-") if c]
        props["station_codes"] = "-".join(c for c in codes if not _is_lrt_code(c))
        if not props["station_codes"]:
            del props["station_codes"]

    if props.get("station_colors"):
        colors = [c for c in props["station_colors"].split("-") if c]
        props["station_colors"] = "-".join(c for c in colors if c != LRT_STATION_COLOR)
        if not props["station_colors"]:
            del props["station_colors"]

    if (feat.get("geometry") or {}).get("type") == "LineString":
        return None
    return feat


def strip_lrt(data: dict) -> dict:
    """Return a copy of *data* without the LRT network."""
    data = copy.deepcopy(data)
    kept = []
    for feat in data.get("features") or []:
        if not feat or not feat.get("properties"):
            continue
        network = feat["properties"].get("network") or ""

        if network == LRT_NETWORK:
            continue
        if LRT_NETWORK in network:
            stripped = _strip_shared_feature(feat)
            if stripped is not None:
                kept.append(stripped)
            continue

        # entrances etc. that only reference LRT stations
        codes = [c for c in (feat["properties"].get("station_codes") or "").split("-") if c]
        if codes and all(_is_lrt_code(c) for c in codes):
            continue
        kept.append(feat)

    removed = len(data.get("features") or []) - len(kept)
    logger.info(f"Stripped {removed} LRT features, {len(kept)} remain")
    return {**data, "features": kept}


def main():
    parser = argparse.ArgumentParser(
        description="Inspect or clean the MRT network snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--input", type=str, default=NETWORK_FILE, help="Snapshot to read")
    parser.add_argument("--stats", action="store_true", help="Print feature counts per network")
    parser.add_argument("--strip-lrt", action="store_true", help="Remove the LRT network")
    parser.add_argument("--output", type=str, help="Where to write (default: overwrite --input)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        snapshot = read_network_file(args.input)
    except LoadError as e:
        logger.error(str(e))
        return False
    data = snapshot.data

    if args.strip_lrt:
        data = strip_lrt(data)
        out = Path(args.output or args.input)
        if out.exists() and out == Path(args.input):
            backup = out.with_name(out.name + ".bak")
            shutil.copyfile(out, backup)
            logger.info(f"Backup written to {backup}")
        out.write_text(json.dumps(data, indent="\t"), encoding="utf-8")
        logger.info(f"Wrote {out} with {len(data['features'])} features")

    if args.stats:
        print("Network counts:")
        for network, count in network_counts(data):
            print(network, count)

    return True


if __name__ == "__main__":
    raise SystemExit(0 if main() else 1)
