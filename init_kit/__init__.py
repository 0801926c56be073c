import importlib.metadata

try:
    _detected_version = importlib.metadata.version("init-kit")
    __version__ = _detected_version if _detected_version else "0.0.0-dev"
except importlib.metadata.PackageNotFoundError:
    # Source checkout without installed metadata
    __version__ = "0.0.0-dev"

from init_kit.settings import (
    InitKitSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "__version__",
    "InitKitSettings",
    "get_settings",
    "clear_settings_cache",
]
