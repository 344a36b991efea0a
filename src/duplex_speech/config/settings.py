import os
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import logging

from ..audio.input.types import AudioFormat, VadConfig
from ..recognizer.protocol import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


class DuplexSpeechConfig(BaseModel):
    api_key: str = Field(..., min_length=1, description="API key for the duplex recognition service")
    language: str = Field(default="auto", description="Recognition language code (auto, en-US, de-DE, ...)")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base URL of the full-duplex speech API")
    sample_rate: int = Field(default=16000, gt=0, description="Capture sample rate in Hz")
    channels: int = Field(default=1, ge=1, description="Capture channel count")
    sample_width: Literal[1, 2] = Field(default=2, description="Bytes per PCM sample")
    input_device: Optional[int] = Field(default=None, description="sounddevice input device index (None = default)")
    window_ms: int = Field(default=16, ge=10, le=16, description="VAD analysis window length in milliseconds")
    max_speech_ms: int = Field(default=10_000, gt=0, le=60_000, description="Longest utterance before a forced upload")
    vad_strategy: Literal["threshold", "energy_frequency"] = Field(default="threshold", description="Speech classifier")
    vad_threshold: int = Field(default=10, ge=0, description="Loudness margin of the threshold classifier")
    chunk_pacing_s: float = Field(default=1.0, ge=0.0, description="Pause between uploaded chunks")
    min_response_length: int = Field(default=17, ge=0, description="Downstream lines this short or shorter are ignored")
    request_timeout_s: float = Field(default=10.0, gt=0.0, description="HTTP connect timeout")
    recordings_dir: Optional[Path] = Field(default=None, description="Save every utterance as WAV here when set")
    log_level: str = Field(default="INFO", description="Logging level")

    def to_audio_format(self) -> AudioFormat:
        return AudioFormat(sample_rate=self.sample_rate, channels=self.channels, sample_width=self.sample_width)

    def to_vad_config(self) -> VadConfig:
        return VadConfig(window_ms=self.window_ms, max_speech_ms=self.max_speech_ms)


def load_config(config_path: Optional[Path] = None) -> DuplexSpeechConfig:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    try:
        recordings_dir = os.getenv("SPEECH_RECORDINGS_DIR", "")
        input_device = os.getenv("SPEECH_INPUT_DEVICE", "")
        config = DuplexSpeechConfig(
            api_key=os.getenv("SPEECH_API_KEY", ""),
            language=os.getenv("SPEECH_LANGUAGE", "auto"),
            base_url=os.getenv("SPEECH_BASE_URL", DEFAULT_BASE_URL),
            sample_rate=int(os.getenv("SAMPLE_RATE", "16000")),
            channels=int(os.getenv("CHANNELS", "1")),
            sample_width=int(os.getenv("SAMPLE_WIDTH", "2")),
            input_device=int(input_device) if input_device else None,
            window_ms=int(os.getenv("VAD_WINDOW_MS", "16")),
            max_speech_ms=int(os.getenv("VAD_MAX_SPEECH_MS", "10000")),
            vad_strategy=os.getenv("VAD_STRATEGY", "threshold"),
            vad_threshold=int(os.getenv("VAD_THRESHOLD", "10")),
            chunk_pacing_s=float(os.getenv("CHUNK_PACING_S", "1.0")),
            min_response_length=int(os.getenv("MIN_RESPONSE_LENGTH", "17")),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_S", "10.0")),
            recordings_dir=Path(recordings_dir) if recordings_dir else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# API key for the full-duplex speech service
SPEECH_API_KEY=your_api_key_here

# Recognition language: auto, en-US, de-DE, ...
SPEECH_LANGUAGE=auto

# Service base URL (must be https)
SPEECH_BASE_URL=https://www.google.com/speech-api/full-duplex/v1/

# Capture format
SAMPLE_RATE=16000
CHANNELS=1
SAMPLE_WIDTH=2
# SPEECH_INPUT_DEVICE=0

# Voice activity detection: threshold or energy_frequency
VAD_STRATEGY=threshold
VAD_THRESHOLD=10
VAD_WINDOW_MS=16
VAD_MAX_SPEECH_MS=10000

# Upload pacing between chunks, in seconds
CHUNK_PACING_S=1.0

# Downstream lines this short are treated as noise
MIN_RESPONSE_LENGTH=17

# HTTP connect timeout, in seconds
REQUEST_TIMEOUT_S=10.0

# Keep a WAV copy of each utterance
# SPEECH_RECORDINGS_DIR=/tmp/utterances

# Logging level
LOG_LEVEL=INFO
"""

    with open(path, "w") as f:
        f.write(example_content)

    logger.info(f"Created example environment file at {path}")


def setup_logging(log_level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
