#!/usr/bin/env python3
"""
Initialize a network from a prototype file and write it as a model file.

Usage
-----
    python scripts/nnet_initialize.py proto.txt nnet.bin --seed 777
"""

from __future__ import annotations

import os
import sys

# Ensure repo_root/src is importable when running this file directly:
# repo_root/
#   src/nnetchain/...
#   scripts/nnet_initialize.py
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import argparse
import logging

import numpy as np

from nnetchain import Nnet


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    ap.add_argument("proto", help="network prototype file")
    ap.add_argument("nnet_out", help="output model file")
    ap.add_argument(
        "--binary",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="write the model in binary mode (default: %(default)s)",
    )
    ap.add_argument("--seed", type=int, default=777, help="random seed for initialization")
    ap.add_argument("-v", "--verbose", action="store_true", help="log each prototype line")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    np.random.seed(args.seed)

    nnet = Nnet()
    nnet.init(args.proto)
    nnet.write(args.nnet_out, binary=args.binary)

    logging.getLogger("nnet_initialize").info(
        "Written initialized model to %s", args.nnet_out
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
