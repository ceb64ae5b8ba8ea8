import json
from pathlib import Path
from typing import Any, Dict, Union

from dacite import Config, from_dict

from .transcription import TranscriptionConfig


class NotJsonError(Exception):
    pass


def transcription_config_from_dict(data: Dict[str, Any]) -> TranscriptionConfig:
    """Build a TranscriptionConfig, rejecting keys that are not configuration fields"""
    return from_dict(data_class=TranscriptionConfig, data=data, config=Config(strict=True))


def load_transcription_config(filename: Union[str, Path]) -> TranscriptionConfig:
    path = Path(filename)
    if path.suffix != ".json":
        raise NotJsonError(f"{path} is not a json file")
    if not path.is_file():
        raise FileNotFoundError(f"{path} does not exist")
    with path.open() as file:
        return transcription_config_from_dict(json.load(file))
