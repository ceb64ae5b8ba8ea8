from types import ModuleType
from typing import Any, Protocol


class ClassConfiguration(Protocol):
    @property
    def type(self) -> str:
        pass


def build_from_config(
    module: ModuleType, config: ClassConfiguration, **kwargs: Any
) -> Any:
    """Create an instance of the class named by config.type in module"""
    classtype = getattr(module, config.type, None)
    if classtype is None:
        raise AttributeError(f"{module.__name__} has no class {config.type}")
    return classtype.build_from_config(config, **kwargs)
