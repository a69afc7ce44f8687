#!/usr/bin/env python3
"""
Print a human-readable summary of a model file.

The report lists the topology, the number of parameters and the moment
statistics of every component's parameters.
"""

from __future__ import annotations

import os
import sys

# Ensure repo_root/src is importable when running this file directly.
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import argparse
import logging

from nnetchain import Nnet


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Print information about a model file.")
    ap.add_argument("nnet_in", help="model file (text or binary)")
    ap.add_argument(
        "--json",
        action="store_true",
        help="treat the input as a JSON checkpoint written by Nnet.save_json()",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.json:
        nnet = Nnet.load_json(args.nnet_in)
    else:
        nnet = Nnet()
        nnet.read(args.nnet_in)

    print(nnet.info(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
