import sys

from messenger_corpus.cli import main

sys.exit(main())
