"""
Assemble formatted corpora from loaded conversations and write them out.

Output files are `<stem>.txt`, or `<stem>_train.txt` / `<stem>_test.txt` when a
test ratio is given. `--hf-dataset` additionally saves a DatasetDict with one
`text` row per session, ready for `datasets.load_from_disk`.
"""

from __future__ import annotations

import logging
import random
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from datasets import Dataset, DatasetDict, Features, Value

from messenger_corpus.archive import Conversation, find_conversations, load_conversation, members_for
from messenger_corpus.config import COMBINED_STEM, EOC, EOM, OUTPUT_SUFFIX, GenerateOptions, validate_ratio
from messenger_corpus.errors import CorpusError
from messenger_corpus.formatting import format_segments
from messenger_corpus.segment import TaggedMessage, tag
from messenger_corpus.split import Partition, make_rng, train_test_split

logger = logging.getLogger(__name__)

TEXT_FEATURES = Features({"text": Value("string")})


@dataclass
class Corpus:
    """Formatted sessions per partition. `test` stays empty when not splitting."""

    train: List[str] = field(default_factory=list)
    test: List[str] = field(default_factory=list)
    split: bool = False

    def text(self, partition: Partition, eoc: str = EOC) -> str:
        segments = self.train if partition is Partition.TRAIN else self.test
        return eoc.join(segments)


def build_corpus(
    conversations: Sequence[Conversation],
    ratio: Optional[float] = None,
    rng: Optional[random.Random] = None,
    eom: str = EOM,
) -> Corpus:
    """
    Format `conversations` (in order) into one corpus.

    With a ratio every conversation is split on its own, all of them drawing
    from the same rng, so the result is reproducible for a fixed seed and
    conversation order.
    """
    validate_ratio(ratio)
    participants_by_id = {c.name: c.participants for c in conversations}
    train: List[TaggedMessage] = []
    test: List[TaggedMessage] = []

    for conv in conversations:
        if ratio is None:
            train.extend(tag(conv.messages, conv.name))
            continue
        if rng is None:
            rng = make_rng()
        conv_train, conv_test = train_test_split(conv.messages, ratio, rng)
        train.extend(tag(conv_train, conv.name))
        test.extend(tag(conv_test, conv.name))

    corpus = Corpus(
        train=format_segments(train, participants_by_id, eom),
        test=format_segments(test, participants_by_id, eom),
        split=ratio is not None,
    )
    logger.info(
        f"Formatted {len(corpus.train)} train sessions"
        + (f", {len(corpus.test)} test sessions" if corpus.split else "")
    )
    return corpus


# --- Output ------------------------------------------------------------------

def output_path(output_dir: Path, stem: str, partition: Optional[Partition] = None) -> Path:
    if partition is None:
        return output_dir / f"{stem}{OUTPUT_SUFFIX}"
    return output_dir / f"{stem}_{partition.value}{OUTPUT_SUFFIX}"


def write_text(path: Path, text: str) -> Path:
    if path.exists():
        logger.warning(f"Overwriting {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info(f"Wrote {len(text):,} characters to {path}")
    return path


def write_corpus(corpus: Corpus, output_dir: Path, stem: str, eoc: str = EOC) -> List[Path]:
    if not corpus.split:
        return [write_text(output_path(output_dir, stem), corpus.text(Partition.TRAIN, eoc))]
    return [
        write_text(output_path(output_dir, stem, p), corpus.text(p, eoc))
        for p in (Partition.TRAIN, Partition.TEST)
    ]


def to_dataset_dict(corpus: Corpus) -> DatasetDict:
    """
    One `text` row per session. Empty partitions are left out: a zero-row split
    is saved without shards and `load_from_disk` cannot read it back.
    """
    partitions = [Partition.TRAIN, Partition.TEST] if corpus.split else [Partition.TRAIN]
    splits = {}
    for p in partitions:
        rows = corpus.train if p is Partition.TRAIN else corpus.test
        if not rows:
            logger.warning(f"No {p.value} sessions; leaving the {p.value!r} split out of the dataset")
            continue
        splits[p.value] = Dataset.from_dict({"text": rows}, features=TEXT_FEATURES)
    if not splits:
        raise CorpusError("no sessions to save as a dataset")
    return DatasetDict(splits)


def save_dataset(corpus: Corpus, out_dir: Path) -> DatasetDict:
    dsd = to_dataset_dict(corpus)
    out_dir.mkdir(parents=True, exist_ok=True)
    dsd.save_to_disk(str(out_dir))
    sizes = ", ".join(f"{k}={len(v):,}" for k, v in dsd.items())
    logger.info(f"Saved DatasetDict ({sizes}) -> {out_dir.resolve()}")
    return dsd


# --- Generate ----------------------------------------------------------------

def generate(options: GenerateOptions) -> List[Path]:
    """Run the `generate` command. Returns the text files written."""
    rng = make_rng(options.seed) if options.test_ratio is not None else None
    written: List[Path] = []

    with zipfile.ZipFile(options.input) as zf:
        conv_map = find_conversations(zf)
        names = [options.name] if options.name is not None else sorted(conv_map)
        logger.info(f"Generating {len(names)} conversation(s) from {options.input}")

        conversations: List[Conversation] = []
        for name in names:
            conv = load_conversation(
                zf,
                name,
                members_for(conv_map, name),
                workers=options.workers,
                progress=options.progress,
            )
            if options.combined:
                conversations.append(conv)
                continue
            corpus = build_corpus([conv], options.test_ratio, rng, options.eom)
            written.extend(write_corpus(corpus, options.output, name, options.eoc))
            if options.hf_dataset is not None:
                save_dataset(corpus, options.hf_dataset / name)

    if options.combined:
        corpus = build_corpus(conversations, options.test_ratio, rng, options.eom)
        written.extend(write_corpus(corpus, options.output, COMBINED_STEM, options.eoc))
        if options.hf_dataset is not None:
            save_dataset(corpus, options.hf_dataset)

    return written
