#!/usr/bin/env python3
"""
send_sample_data.py - Export synthetic (or YAML-defined) MELT data once

Run: python send_sample_data.py [model.yaml]

Env:
  MELT_URL / MELT_TOKEN / MELT_TENANT / MELT_AUTH_METHOD  target profile (see melt/config.py)
  MELT_DRY_RUN=true       build and dump, but do not POST
  MELT_DUMP_FORMAT=json   one of human, text, json, yaml, hex (empty: no dump)
"""

import logging
import os
import sys

import requests
from dotenv import load_dotenv

from melt.api import HttpStatusError
from melt.config import ConfigError
from melt.exporter import Exporter, MeltExportError
from melt.model import load_entities
from melt.sample_data import create_sample_entities


def print_banner(text):
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    dry_run = os.getenv("MELT_DRY_RUN", "false").lower() == "true"
    dump_format = os.getenv("MELT_DUMP_FORMAT", "").strip()

    if argv:
        print(f"[config] Loading MELT model from {argv[0]}")
        entities = load_entities(argv[0])
    else:
        print("[config] No model file given; using synthetic checkout scenario")
        entities = create_sample_entities()

    exporter = Exporter(
        dump_func=(lambda s: print(s, end="")) if dump_format else None,
        dump_format=dump_format or "human",
        dry_run=dry_run,
    )

    try:
        print_banner("METRICS")
        exporter.export_metrics(entities)
        print_banner("LOGS / EVENTS")
        exporter.export_logs(entities)
        print_banner("SPANS")
        exporter.export_spans(entities)
    except (MeltExportError, HttpStatusError, ConfigError, requests.RequestException) as e:
        print(f"❌ Export failed: {e}")
        return 1

    print("\n✅ Done" + (" (dry run, nothing sent)" if dry_run else ""))
    return 0


if __name__ == "__main__":
    sys.exit(main())
