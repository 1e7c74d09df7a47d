"""
Turn a Facebook Messenger export zip into a plain-text training corpus.
"""

from messenger_corpus.errors import (
    ConfigurationError,
    CorpusError,
    MalformedEscapeSequence,
    ParticipantMismatch,
    SchemaError,
    UnknownConversation,
)
from messenger_corpus.escapes import repair
from messenger_corpus.formatting import format_conversation
from messenger_corpus.messages import Message, Participant, parse_conversation_file
from messenger_corpus.segment import TaggedMessage, segment
from messenger_corpus.split import Partition, train_test_split

__version__ = "0.2.0"

__all__ = [
    "ConfigurationError",
    "CorpusError",
    "MalformedEscapeSequence",
    "Message",
    "Partition",
    "Participant",
    "ParticipantMismatch",
    "SchemaError",
    "TaggedMessage",
    "UnknownConversation",
    "format_conversation",
    "parse_conversation_file",
    "repair",
    "segment",
    "train_test_split",
]
