"""
Identifier naming a single service.
"""
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class ServiceId:
    """
    Case-sensitive, trimmed service name.

    Used as a mapping key, in default image and container names, and as the
    name of the service's source directory, so it must be a valid single
    path component.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"service id must be a string, got {type(self.value).__name__}")
        trimmed = self.value.strip()
        if not trimmed:
            raise ValueError("service id is empty")
        if trimmed in (".", "..") or "/" in trimmed or "\\" in trimmed:
            raise ValueError(f"service id {trimmed!r} is not a valid directory name")
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value
