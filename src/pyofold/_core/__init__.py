from ._config import Config, get_config, set_config
from ._main import CommonBase, Pipeable

__all__ = [
    "CommonBase",
    "Config",
    "Pipeable",
    "get_config",
    "set_config",
]
