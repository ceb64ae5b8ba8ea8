from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

from .optimization import IpoptConfig, SNOPTConfig

ConstraintTypeName = Literal["ALL", "VALUE_ONLY", "OMIT"]


@dataclass
class ModeConfig:
    num_knots: int
    minimum_timestep: float
    maximum_timestep: float
    relative: List[bool] = field(default_factory=list)
    start_type: Union[ConstraintTypeName, List[ConstraintTypeName]] = "ALL"
    interior_type: Union[ConstraintTypeName, List[ConstraintTypeName]] = "ALL"
    end_type: Union[ConstraintTypeName, List[ConstraintTypeName]] = "ALL"
    force_cost: float = 1.0e-4


@dataclass
class TranscriptionConfig:
    modes: List[ModeConfig]
    solver: Optional[Literal["SNOPT", "IPOPT"]] = None
    snopt: SNOPTConfig = field(default_factory=SNOPTConfig)
    ipopt: IpoptConfig = field(default_factory=IpoptConfig)
    equal_time: bool = False
    type: Literal["ModeSequenceTranscription"] = "ModeSequenceTranscription"
