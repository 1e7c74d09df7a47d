#!/usr/bin/env python3
"""
Convert a zip of Facebook Messenger data into a corpus suitable for language-model training.

Example:
    messenger-corpus list facebook-export.zip

    messenger-corpus generate \
        --input facebook-export.zip \
        --name alicesmith_abc123 \
        --output out/ \
        --test 0.1 \
        --seed 42
"""

from __future__ import annotations

import argparse
import logging
import sys
import zipfile
from pathlib import Path
from typing import List, Optional

from messenger_corpus import __version__
from messenger_corpus.archive import list_conversations
from messenger_corpus.config import EOC, EOM, GenerateOptions
from messenger_corpus.corpus import generate
from messenger_corpus.errors import CorpusError

logger = logging.getLogger("messenger_corpus")


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="messenger-corpus",
        description="Convert a Facebook Messenger export zip into a training corpus.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List conversations in the export")
    ls.add_argument("input", type=Path, help="Messenger export zip")

    gen = sub.add_parser("generate", help="Generate a training corpus from conversations")
    gen.add_argument("--input", "-i", type=Path, required=True, help="Messenger export zip")
    gen.add_argument("--name", "-n", default=None,
                     help="Conversation folder name (see `list`); all conversations when omitted")
    gen.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    gen.add_argument("--test", "-t", dest="test_ratio", type=float, default=None,
                     help="Test ratio in (0, 1); writes <name>_train.txt and <name>_test.txt")
    gen.add_argument("--seed", "-s", type=int, default=None, help="RNG seed for the train/test split")
    gen.add_argument("--combined", action="store_true",
                     help="Write one corpus for all selected conversations instead of one per conversation")
    gen.add_argument("--workers", type=int, default=1, help="Processes used to parse export files")
    gen.add_argument("--progress", action="store_true", help="Show progress with tqdm")
    gen.add_argument("--hf-dataset", type=Path, default=None,
                     help="Also save a Hugging Face DatasetDict (one row per session) here")
    gen.add_argument("--eom", default=EOM, help=f"End-of-message delimiter (default {EOM!r})")
    gen.add_argument("--eoc", default=EOC, help=f"End-of-conversation delimiter (default {EOC!r})")
    return ap.parse_args(argv)


def run_list(args: argparse.Namespace) -> int:
    for name in list_conversations(args.input):
        print(name)
    return 0


def run_generate(args: argparse.Namespace) -> int:
    options = GenerateOptions(
        input=args.input,
        output=args.output,
        name=args.name,
        test_ratio=args.test_ratio,
        seed=args.seed,
        combined=args.combined,
        workers=args.workers,
        progress=args.progress,
        hf_dataset=args.hf_dataset,
        eom=args.eom,
        eoc=args.eoc,
    )
    written = generate(options)
    logger.info(f"[OK] Wrote {len(written)} file(s) to {options.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)
    try:
        if args.command == "list":
            return run_list(args)
        return run_generate(args)
    except CorpusError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        return 1
    except zipfile.BadZipFile as e:
        logger.error(f"Not a zip archive: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
