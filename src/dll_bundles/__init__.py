"""dll_bundles: 事前ビルド済みDLLバンドルの鮮度判定とリビルド制御."""

from dll_bundles.config import DllBundlesOptions, build_options, load_config
from dll_bundles.control import DllBundlesControl
from dll_bundles.runner import run_bundles

__version__ = "0.1.0"

__all__ = [
    "DllBundlesOptions",
    "DllBundlesControl",
    "build_options",
    "load_config",
    "run_bundles",
]
