"""Base model shared by every configuration object."""

from pydantic import BaseModel, ConfigDict


class WeftBaseConfig(BaseModel):
    """
    配置基类

    Unknown keys are rejected and assignments are re-validated, so a
    runtime toggle such as ``kernel.debug(True)`` goes through the same
    checks as construction.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )
