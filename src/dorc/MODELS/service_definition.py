"""
Models for a service's declarative configuration: container naming, ports,
volumes, links to other services and health check pings.
"""
from typing import List, Dict, Optional, Any
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .service_id import ServiceId


def _drop_nulls(data: Any) -> Any:
    # An empty YAML key ("env:") parses as None; treat it as absent.
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


class Link(BaseModel):
    """
    A dependency on another service, with the alias the target is reachable
    under from inside this service's container.

    Accepts ``{"id": "db", "alias": "database"}`` or the compact forms
    ``"db"`` and ``"db:database"``. The alias defaults to the target id.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    id: ServiceId
    alias: str

    @model_validator(mode="before")
    @classmethod
    def _expand(cls, data: Any) -> Any:
        if isinstance(data, str):
            target, _, alias = data.partition(":")
            data = {"id": target, "alias": alias or None}
        data = _drop_nulls(data)
        if isinstance(data, dict) and "alias" not in data and "id" in data:
            data = dict(data, alias=str(data["id"]).strip())
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _to_service_id(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ServiceId(v)
        return v


class Ping(BaseModel):
    """
    An HTTP endpoint that must respond before the service counts as up.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    timeout_ms: int = Field(
        default=60000,
        validation_alias=AliasChoices("timeoutMs", "timeout", "timeout_ms"),
    )


class HealthChecks(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    pings: List[Ping] = []

    @model_validator(mode="before")
    @classmethod
    def _nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class ContainerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Optional[str] = None


class ServiceConfig(BaseModel):
    """
    The full declaration of a single service.
    Absent fields fall back to computed defaults (tag, container name) or
    empty collections.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: Optional[str] = None
    container: ContainerConfig = Field(default_factory=ContainerConfig)

    env: Dict[str, str] = {}
    ports: List[str] = []  # "container[ host]"
    volumes: Dict[str, str] = {}  # {container path: host path}

    links: List[Link] = []
    health_checks: HealthChecks = Field(
        default_factory=HealthChecks,
        validation_alias=AliasChoices("healthChecks", "health_checks"),
    )

    @model_validator(mode="before")
    @classmethod
    def _nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)

    @field_validator("ports", mode="before")
    @classmethod
    def _ports_as_text(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [str(p) if isinstance(p, int) else p for p in v]
        return v

    @field_validator("env", mode="before")
    @classmethod
    def _env_as_text(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v

    @property
    def link_ids(self) -> List[ServiceId]:
        return [link.id for link in self.links]
