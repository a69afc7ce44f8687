#!/usr/bin/env python3
"""
Copy a model file, optionally converting its encoding or trimming it.

Examples
--------
Convert a binary model to text:

    python scripts/nnet_copy.py --no-binary final.nnet final.txt

Drop the softmax at the end of a network:

    python scripts/nnet_copy.py --remove-last-components 1 final.nnet no_softmax.nnet
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

logger = logging.getLogger("nnet_copy")


def _non_negative(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {n}")
    return n


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Copy a model file.")
    ap.add_argument("nnet_in", help="input model file")
    ap.add_argument("nnet_out", help="output model file")
    ap.add_argument(
        "--binary",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="write the output in binary mode (default: %(default)s)",
    )
    ap.add_argument(
        "--remove-first-components",
        type=_non_negative,
        default=0,
        help="number of leading components to drop",
    )
    ap.add_argument(
        "--remove-last-components",
        type=_non_negative,
        default=0,
        help="number of trailing components to drop",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    nnet = Nnet()
    nnet.read(args.nnet_in)

    if args.remove_first_components + args.remove_last_components > len(nnet):
        ap.error(
            f"cannot remove {args.remove_first_components + args.remove_last_components} "
            f"components from a network of {len(nnet)}"
        )
    for _ in range(args.remove_first_components):
        nnet.remove_component(0)
    for _ in range(args.remove_last_components):
        nnet.remove_last_component()

    nnet.write(args.nnet_out, binary=args.binary)
    logger.info("Written model to %s", args.nnet_out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
