class CharLMError(Exception):
    """Base class for errors raised by charlm."""


class CorpusError(CharLMError):
    """Training text is missing, unreadable or too short."""


class VocabularyError(CharLMError):
    """A character is not part of the vocabulary."""


class ConfigError(CharLMError):
    """A TrainerConfig value is out of range."""


class ArtifactError(CharLMError):
    """An artifacts folder is missing a file the runtime needs."""
