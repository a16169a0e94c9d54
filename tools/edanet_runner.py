"""edanet command-line runner.

Modes:
    python -m tools.edanet_runner --learn SRC_DIR [--suffix .go] [--embedding OUT]
    python -m tools.edanet_runner --file corpus.txt.bz2 --wander
    python -m tools.edanet_runner --file corpus.txt [--iterations N]

Network defaults (seed, window, population, banks) come from
:func:`edanet.settings.load_settings`; flags override them.
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Optional, Sequence

from edanet.core import log as logmod
from edanet.core.errors import EdaError
from edanet.core.network import Network
from edanet.core.rng import seed_everything
from edanet.core.snapshot import load_snapshot, save_snapshot
from edanet.settings import Settings, load_settings

from .edanet_data import (
    BYTE_VOCAB,
    POSITION_BITS,
    build_embedding,
    learn_embedding,
    load_embedding,
    read_corpus,
    save_embedding,
)
from .edanet_drive import CATEGORY_NAMES, classify, wander


WriteLine = Callable[[str], None]

WANDER_OUTPUTS = 16
CLASSIFY_OUTPUTS = 3
DEFAULT_FILE = "10.txt.utf-8.bz2"
DEFAULT_EMBEDDING = "embedding.pt"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edanet",
        description="Drive an entropy-ranked EDA network over a byte corpus.",
    )
    parser.add_argument("--file", default=DEFAULT_FILE, help="corpus to process (.bz2 is decompressed)")
    parser.add_argument("--learn", metavar="DIR", default=None, help="learn an embedding from a source tree and exit")
    parser.add_argument("--suffix", default=".go", help="file suffix used by --learn")
    parser.add_argument("--embedding", default=None, help="embedding table to load (or to write with --learn)")
    parser.add_argument("--wander", action="store_true", help="wander mode")
    parser.add_argument("--iterations", type=int, default=None, help="classify at most N positions")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--window", type=int, default=None)
    parser.add_argument("--population", type=int, default=None)
    parser.add_argument("--banks", type=int, choices=(1, 3), default=None)
    parser.add_argument("--resume", default=None, help="belief snapshot to restore before running")
    parser.add_argument("--snapshot", default=None, help="write the belief snapshot here at exit")
    return parser


def _override(settings: Settings, args: argparse.Namespace) -> dict:
    return {
        "seed": settings.seed if args.seed is None else args.seed,
        "window": settings.window if args.window is None else args.window,
        "population": settings.population if args.population is None else args.population,
        "banks": settings.banks if args.banks is None else args.banks,
    }


def make_network(settings: Settings, args: argparse.Namespace, inputs: int, outputs: int) -> Network:
    ovrmap = _override(settings, args)
    return Network(
        inputs,
        outputs,
        seed=ovrmap["seed"],
        window=ovrmap["window"],
        population=ovrmap["population"],
        banks=ovrmap["banks"],
        dtype=settings.dtype,
        device=settings.device,
        log_every=settings.log_every,
    )


def run(args: argparse.Namespace, settings: Settings, write_line: WriteLine) -> int:
    if args.learn:
        table = learn_embedding(args.learn, args.suffix)
        save_embedding(table, args.embedding or DEFAULT_EMBEDDING)
        return 0

    data, _dropped = read_corpus(args.file)
    if not data:
        logmod.log(f"[runner] empty corpus: {args.file}")
        return 1

    table = load_embedding(args.embedding) if args.embedding else build_embedding(data)

    if args.wander:
        net = make_network(settings, args, BYTE_VOCAB, WANDER_OUTPUTS)
    else:
        net = make_network(settings, args, BYTE_VOCAB + POSITION_BITS, CLASSIFY_OUTPUTS)
    if args.resume:
        load_snapshot(net, args.resume)
    logmod.log(f"[runner] {net!r} corpus={len(data)} bytes")

    if args.wander:
        wander(net, table, data, on_step=lambda pos, byt: write_line(f"{pos}\t{chr(byt)!r}"))
    else:
        for pos, byt, catval in classify(net, table, data, args.iterations):
            write_line(f"{pos}\t{CATEGORY_NAMES[catval]}\t{chr(byt)!r}")

    snppth = args.snapshot or settings.snapshot_path
    if snppth:
        save_snapshot(net, snppth)
    return 0


def main(argv: Optional[Sequence[str]] = None, *, write_line: Optional[WriteLine] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    logmod.LOG_PATH = settings.log_path
    seed_everything(_override(settings, args)["seed"])

    try:
        return run(args, settings, write_line or print)
    except (EdaError, OSError) as exc:
        logmod.log(f"[runner] error: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
