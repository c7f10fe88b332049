# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Container runtime client: the operations the orchestrator needs from the
runtime, and an implementation backed by the Docker Engine API.
"""
import functools
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol

import docker
import requests
from docker import auth as docker_auth
from docker.errors import DockerException

from ..exceptions import ContainerRuntimeError
from ..MODELS.runtime_records import ContainerRecord, HostConfig, ImageRecord

logger = logging.getLogger(__name__)


class RuntimeClient(Protocol):
    """
    Blocking calls against a container runtime. Implementations report
    every failure as ContainerRuntimeError.
    """

    def list_containers(self, all: bool = False) -> List[ContainerRecord]: ...

    def inspect_container_image(self, container_id: str) -> str: ...

    def create_container(
        self, image: str, name: str, env: List[str], host_config: HostConfig
    ) -> str: ...

    def start_container(self, container_id: str) -> None: ...

    def stop_container(self, container_id: str, timeout: int) -> None: ...

    def remove_container(self, container_id: str, force: bool = False) -> None: ...

    def list_images(self) -> List[ImageRecord]: ...

    def remove_image(self, image_id: str, force: bool = False) -> None: ...

    def build_image(
        self, path: str, tag: str, no_cache: bool = False, remove_intermediate: bool = False
    ) -> Iterator[str]: ...

    def push_image(
        self, repository: str, tag: Optional[str], auth: Optional[Mapping[str, Any]]
    ) -> Iterator[Dict[str, Any]]: ...

    def registry_auth(self, registry: Optional[str] = None) -> Optional[Dict[str, Any]]: ...


def _wrap_errors(func):
    """Re-raises Docker SDK and transport failures as ContainerRuntimeError."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (DockerException, requests.exceptions.RequestException) as e:
            raise ContainerRuntimeError(f"{func.__name__} failed: {e}") from e
    return wrapper


def _wrap_stream(stream: Iterator, name: str) -> Iterator:
    try:
        yield from stream
    except (DockerException, requests.exceptions.RequestException) as e:
        raise ContainerRuntimeError(f"{name} failed: {e}") from e


class DockerRuntimeClient:
    """
    RuntimeClient backed by the Docker SDK's low-level API client.

    Host configuration is applied when the container is created, since the
    Engine API no longer accepts it on start.

    The connection is opened on first use, so commands that never reach the
    runtime work without a daemon.
    """

    def __init__(self, api: Optional[docker.APIClient] = None, base_url: Optional[str] = None):
        """
        :param api: Low-level client. Defaults to one for ``base_url``, or
            configured from the DOCKER_* environment variables.
        :param base_url: Daemon address, e.g. 'unix:///var/run/docker.sock'.
        """
        self._api = api
        self.base_url = base_url

    @property
    def api(self) -> docker.APIClient:
        if self._api is None:
            if self.base_url:
                self._api = docker.APIClient(base_url=self.base_url)
            else:
                self._api = docker.from_env().api
        return self._api

    @_wrap_errors
    def list_containers(self, all: bool = False) -> List[ContainerRecord]:
        return [
            ContainerRecord(
                id=c["Id"],
                image=c.get("Image", ""),
                names=tuple(c.get("Names") or ()),
                running=c.get("State") == "running",
            )
            for c in self.api.containers(all=all)
        ]

    @_wrap_errors
    def inspect_container_image(self, container_id: str) -> str:
        return self.api.inspect_container(container_id)["Image"]

    @_wrap_errors
    def create_container(self, image: str, name: str, env: List[str], host_config: HostConfig) -> str:
        docker_host_config = self.api.create_host_config(
            port_bindings=dict(host_config.port_bindings),
            binds=[f"{host}:{path}:rw" for path, host in host_config.binds.items()],
            links=list(host_config.links),
            publish_all_ports=host_config.publish_all_ports,
        )
        response = self.api.create_container(
            image,
            name=name.lstrip("/"),
            environment=env,
            ports=list(host_config.port_bindings),
            volumes=list(host_config.binds),
            host_config=docker_host_config,
        )
        for warning in response.get("Warnings") or []:
            logger.warning(warning)
        return response["Id"]

    @_wrap_errors
    def start_container(self, container_id: str) -> None:
        self.api.start(container_id)

    @_wrap_errors
    def stop_container(self, container_id: str, timeout: int) -> None:
        self.api.stop(container_id, timeout=timeout)

    @_wrap_errors
    def remove_container(self, container_id: str, force: bool = False) -> None:
        self.api.remove_container(container_id, force=force)

    @_wrap_errors
    def list_images(self) -> List[ImageRecord]:
        return [
            ImageRecord(id=i["Id"], repo_tags=tuple(i.get("RepoTags") or ()))
            for i in self.api.images()
        ]

    @_wrap_errors
    def remove_image(self, image_id: str, force: bool = False) -> None:
        self.api.remove_image(image_id, force=force)

    @_wrap_errors
    def build_image(
        self, path: str, tag: str, no_cache: bool = False, remove_intermediate: bool = False
    ) -> Iterator[str]:
        stream = self.api.build(path=path, tag=tag, nocache=no_cache, rm=remove_intermediate, decode=True)
        return self._build_lines(_wrap_stream(stream, "build_image"))

    @staticmethod
    def _build_lines(stream: Iterator[Dict[str, Any]]) -> Iterator[str]:
        for chunk in stream:
            if "stream" in chunk:
                yield chunk["stream"]
            elif "error" in chunk:
                yield chunk["error"]

    @_wrap_errors
    def push_image(
        self, repository: str, tag: Optional[str], auth: Optional[Mapping[str, Any]]
    ) -> Iterator[Dict[str, Any]]:
        stream = self.api.push(
            repository, tag=tag, auth_config=dict(auth) if auth else None, stream=True, decode=True
        )
        return _wrap_stream(stream, "push_image")

    @_wrap_errors
    def registry_auth(self, registry: Optional[str] = None) -> Optional[Dict[str, Any]]:
        config = docker_auth.load_config()
        return docker_auth.resolve_authconfig(config, registry)
