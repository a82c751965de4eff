"""Terminal visualization helpers."""

from weft.visualization.console import KernelInspector

__all__ = ["KernelInspector"]
