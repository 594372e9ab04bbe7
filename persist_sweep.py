#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Multiplicative persistence record sweeper.

For every digit length 2..--max-digits, walks the canonical forms
<prefix>555777888999 (prefix one of 26, 2, 3, 4, 6 or empty), computes the
persistence of each and prints a line whenever the record is beaten:

    03:  39
    04:  77
    ...

Digit lengths are handed out to worker processes one at a time, so long
lengths never hold up the short ones. Each completed block of --bucket-width
lengths is reported on stderr as "Finished searching at N digits".

Usage examples:
  python persist_sweep.py --max-digits 100
  python persist_sweep.py -d 300 --workers 8 --log-level INFO
  python persist_sweep.py -d 40 --workers 1
"""

from __future__ import annotations
import argparse
import logging
import sys

from canonical import DIGIT_BUCKET
from persistence import gmpy2_version_str
from records import SearchConfig, default_workers, search

logger = logging.getLogger("persist_sweep")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Multiplicative persistence record sweeper (canonical forms)")
    ap.add_argument("-d", "--max-digits", type=int, default=100,
                    help="largest digit length to search (default 100)")
    ap.add_argument("--workers", type=int,
                    help=f"parallel workers across digit lengths (default: logical CPUs = {default_workers()})")
    ap.add_argument("--threads", action="store_true",
                    help="use a thread pool instead of worker processes")
    ap.add_argument("--floor", type=int, default=2,
                    help="only report persistences above this value (default 2)")
    ap.add_argument("--bucket-width", type=int, default=DIGIT_BUCKET,
                    help=f"digit lengths per progress line (default {DIGIT_BUCKET})")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    help="logging level on stderr (default WARNING)")
    return ap

def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT, stream=sys.stderr)

    cfg = SearchConfig(
        max_digits=args.max_digits,
        workers=args.workers,
        executor="thread" if args.threads else "process",
        floor=args.floor,
        bucket_width=args.bucket_width,
    )
    try:
        cfg.validate()
    except ValueError as e:
        ap.error(str(e))

    logger.info("python %s, gmpy2 %s", sys.version.split()[0], gmpy2_version_str())
    try:
        search(cfg)
    except KeyboardInterrupt:
        print("\nInterrupted. Cancelling…", file=sys.stderr, flush=True)
        return 130
    except OSError as e:
        logger.error("output failed: %s", e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
