from .build_from_config import build_from_config
from .load_config import (
    NotJsonError,
    load_transcription_config,
    transcription_config_from_dict,
)
from .optimization import IpoptConfig, SNOPTConfig
from .transcription import ModeConfig, TranscriptionConfig

__all__ = [
    "build_from_config",
    "NotJsonError",
    "load_transcription_config",
    "transcription_config_from_dict",
    "IpoptConfig",
    "SNOPTConfig",
    "ModeConfig",
    "TranscriptionConfig",
]
