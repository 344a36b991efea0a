"""Error taxonomy shared by the capture, VAD and duplex transport layers."""


class DuplexSpeechError(Exception):
    """Base class for all errors raised by duplex_speech."""


class TransportError(DuplexSpeechError):
    """Non-secure URL, refused connection or a non-2xx HTTP status."""


class MalformedResponseError(DuplexSpeechError):
    """A downstream line lacks the keys a recognition result needs."""


class CaptureError(DuplexSpeechError):
    """The audio source could not be read. Fatal to a VAD session."""


class ProtocolLimitError(DuplexSpeechError):
    """A payload chunk exceeds the service's chunk ceiling."""


class InvalidInputError(DuplexSpeechError, ValueError):
    """Input has a shape the algorithm cannot handle (e.g. non power-of-two FFT)."""
