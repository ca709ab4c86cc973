"""mneme: spaced-repetition review scheduling for note-taking apps."""

from mneme.consts import VERSION

__version__ = VERSION
