"""
Defaults for corpus generation. Everything here can be overridden from the CLI
except the two timeouts, which define the segmentation and split heuristics.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from messenger_corpus.errors import ConfigurationError

# AFK for more than 10 minutes means a new session
CONVERSATION_TIMEOUT = 10 * 60

# A split flip needs more than a day since the previous flip
TRAIN_TEST_TIMEOUT = 24 * 60 * 60

EOM = "|EOM|"
EOC = "<|endoftext|>"

UNKNOWN_CONTENT = "UNKNOWN CONTENT TYPE"

# File stem used by --combined
COMBINED_STEM = "corpus"

OUTPUT_SUFFIX = ".txt"


def validate_ratio(ratio: Optional[float]) -> Optional[float]:
    if ratio is None:
        return None
    if math.isnan(ratio) or not 0.0 < ratio < 1.0:
        raise ConfigurationError(f"test ratio must lie strictly between 0 and 1, got {ratio}")
    return ratio


@dataclass(frozen=True)
class GenerateOptions:
    """Validated options for the `generate` command."""

    input: Path
    output: Path
    name: Optional[str] = None
    test_ratio: Optional[float] = None
    seed: Optional[int] = None
    combined: bool = False
    workers: int = 1
    progress: bool = False
    hf_dataset: Optional[Path] = None
    eom: str = EOM
    eoc: str = EOC

    def __post_init__(self):
        validate_ratio(self.test_ratio)
        if self.workers < 1:
            raise ConfigurationError(f"--workers must be at least 1, got {self.workers}")
        if self.seed is not None and self.seed < 0:
            raise ConfigurationError(f"--seed must be non-negative, got {self.seed}")
