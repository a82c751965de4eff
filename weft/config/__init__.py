"""
Weft Configuration Module - 统一配置导出
"""

from weft.config.base import WeftBaseConfig
from weft.config.composition import CompositionConfig
from weft.config.kernel import KernelConfig

__all__ = [
    "WeftBaseConfig",
    "KernelConfig",
    "CompositionConfig",
]
