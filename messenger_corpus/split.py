"""
Train/test splitting for a chronological message stream.

The partition can only change at a "flip": a message that follows a gap longer
than CONVERSATION_TIMEOUT *and* comes more than TRAIN_TEST_TIMEOUT after the
previous flip. A flip draws from the rng and lands in train when the draw
exceeds the test ratio. Requiring both gaps keeps a real conversation (and
the exchanges right next to it) in a single partition.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from messenger_corpus.config import TRAIN_TEST_TIMEOUT, validate_ratio
from messenger_corpus.errors import ConfigurationError
from messenger_corpus.messages import Message
from messenger_corpus.segment import elapsed_seconds, is_session_break

logger = logging.getLogger(__name__)


class Partition(enum.Enum):
    TRAIN = "train"
    TEST = "test"


@dataclass(frozen=True)
class SplitCursor:
    partition: Partition
    anchor: datetime
    last: datetime

    def step(self, ts: datetime, ratio: float, rng: random.Random) -> "SplitCursor":
        if is_session_break(self.last, ts) and elapsed_seconds(self.anchor, ts) > TRAIN_TEST_TIMEOUT:
            partition = Partition.TRAIN if rng.random() > ratio else Partition.TEST
            return SplitCursor(partition, ts, ts)
        return replace(self, last=ts)


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Seeded generator, or one seeded from system entropy when seed is None."""
    return random.Random(seed)


def assign_partitions(messages: Sequence[Message], ratio: float, rng: random.Random) -> List[Partition]:
    """One partition tag per message, in input order."""
    if ratio is None:
        raise ConfigurationError("a test ratio is required to split")
    validate_ratio(ratio)
    if not messages:
        return []

    first = messages[0].timestamp
    cursor = SplitCursor(Partition.TRAIN, first, first)
    tags = []
    for m in messages:
        cursor = cursor.step(m.timestamp, ratio, rng)
        tags.append(cursor.partition)
    return tags


def train_test_split(
    messages: Sequence[Message],
    ratio: float,
    rng: random.Random,
) -> Tuple[List[Message], List[Message]]:
    """Split into (train, test). Relative order is preserved in both halves."""
    train, test = [], []
    for m, partition in zip(messages, assign_partitions(messages, ratio, rng)):
        (train if partition is Partition.TRAIN else test).append(m)
    logger.debug(f"Split {len(messages)} messages: {len(train)} train, {len(test)} test")
    return train, test
