"""
Settings shared by every lifecycle operation of an orchestrator instance.
"""
import os
from enum import Enum
from typing import FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field


class BuildFlag(str, Enum):
    """
    Independently togglable image build options.
    """
    NO_CACHE = "no-cache"
    REMOVE_INTERMEDIATE_IMAGES = "rm"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _working_dir_name() -> str:
    # the filesystem root has no name
    return os.path.basename(os.path.abspath(os.getcwd())) or "dorc"


class OrchestratorSettings(BaseModel):
    """
    Naming, build and pacing options. ``project`` defaults to the name of
    the working directory.

    ``snooze_ms`` pauses after each mutating runtime step; 0 disables it.
    """
    model_config = ConfigDict(frozen=True)

    namespace: str = "dorc"
    project: str = Field(default_factory=_working_dir_name)
    build_flags: FrozenSet[BuildFlag] = frozenset()
    snooze_ms: int = 0
    stop_timeout: int = 1
    work_dir: str = os.path.join("target", "docker")

    @classmethod
    def from_env(cls, default_project: Optional[str] = None, **overrides) -> "OrchestratorSettings":
        """
        Builds settings from DORC_* environment variables. Keyword arguments
        that are not None take precedence.
        """
        flags = set()
        if _env_bool("DORC_NO_CACHE"):
            flags.add(BuildFlag.NO_CACHE)
        if _env_bool("DORC_REMOVE_INTERMEDIATE_IMAGES"):
            flags.add(BuildFlag.REMOVE_INTERMEDIATE_IMAGES)

        values = {
            "namespace": os.getenv("DORC_NAMESPACE", "dorc"),
            "project": os.getenv("DORC_PROJECT", default_project or _working_dir_name()),
            "build_flags": frozenset(flags),
            "snooze_ms": _env_int("DORC_SNOOZE_MS", 0),
            "stop_timeout": _env_int("DORC_STOP_TIMEOUT", 1),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
