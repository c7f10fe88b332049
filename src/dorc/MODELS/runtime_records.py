"""
Records describing what the container runtime reports, and the host
configuration handed to it when creating a container.

Records are fetched fresh for every decision and never cached.
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContainerRecord:
    """A container as listed by the runtime."""
    id: str
    image: str
    names: Tuple[str, ...] = ()
    running: bool = False


@dataclass(frozen=True)
class ImageRecord:
    """An image as listed by the runtime."""
    id: str
    repo_tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImageLookup:
    """
    Outcome of resolving a tag to an image id.
    Use ``ImageLookup.found(id)`` or ``ImageLookup.not_found()``.
    """
    image_id: Optional[str] = None

    @classmethod
    def found(cls, image_id: str) -> "ImageLookup":
        return cls(image_id=image_id)

    @classmethod
    def not_found(cls) -> "ImageLookup":
        return cls()

    @property
    def is_found(self) -> bool:
        return self.image_id is not None


@dataclass
class HostConfig:
    """
    Host-side settings for a container: published ports, volume binds and
    links to other containers.
    """
    port_bindings: Dict[int, int] = field(default_factory=dict)  # {container: host}, TCP
    binds: Dict[str, str] = field(default_factory=dict)  # {container path: absolute host path}
    links: List[Tuple[str, str]] = field(default_factory=list)  # [(container name, alias)]
    publish_all_ports: bool = True
