class ConfigError(RuntimeError):
    """Required configuration is missing or malformed."""


class SynthesisInputError(ValueError):
    """Text handed to a synthesizer has nothing to speak."""


class RecognitionError(RuntimeError):
    """The upstream recognition stream failed and is no longer usable."""


class SynthesisError(RuntimeError):
    """Speech synthesis failed for an utterance."""
