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
Per-service reconciliation of desired state (config, built image) against
what the container runtime currently reports.
"""
import logging
import os
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from ..BUILDERS.context_builder import BuildContextProvider
from ..exceptions import BuildError, ConfigurationError, ContainerRuntimeError, OrchestrationError
from ..MODELS.orchestrator_settings import BuildFlag, OrchestratorSettings
from ..MODELS.runtime_records import ContainerRecord, HostConfig, ImageLookup
from ..MODELS.service_id import ServiceId
from ..PLUGINS.plugin_host import PluginHost
from ..REGISTRY.image_reference import ImageReference
from ..RUNNERS.runtime_client import RuntimeClient
from .config_store import ConfigStore
from .health_checker import HealthChecker

logger = logging.getLogger(__name__)

BUILD_SUCCESS_MARKER = "Successfully built"


class StartAction(str, Enum):
    """What ``start`` decided to do for a service."""
    CREATE = "create"
    RECREATE = "recreate"
    RESUME = "resume"
    NONE = "none"


class Reconciler:
    """
    Decides, per service, whether to create, recreate, resume or leave alone
    its container, and performs the single-service build, stop, clean and
    push steps. Runtime state is queried afresh for every decision.
    """

    def __init__(
        self,
        store: ConfigStore,
        client: RuntimeClient,
        context_provider: BuildContextProvider,
        health_checker: HealthChecker,
        plugin_host: PluginHost,
        settings: OrchestratorSettings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.client = client
        self.context_provider = context_provider
        self.health_checker = health_checker
        self.plugin_host = plugin_host
        self.settings = settings
        self._sleep = sleep

    # -- runtime queries ---------------------------------------------------

    def find_containers(self, service_id: ServiceId, all: bool) -> List[ContainerRecord]:
        """
        Containers backed by the service's image name or carrying its
        container name. ``all`` includes stopped containers.
        """
        image_name = self.store.image_name(service_id)
        container_name = self.store.container_name(service_id)
        return [
            c for c in self.client.list_containers(all=all)
            if c.image == image_name or container_name in c.names
        ]

    def find_container(self, service_id: ServiceId) -> Optional[ContainerRecord]:
        containers = self.find_containers(service_id, all=True)
        return containers[0] if containers else None

    def find_image_id(self, service_id: ServiceId) -> ImageLookup:
        """
        Resolves the service's tag to the first image carrying it, in any version:
        a repo tag equal to the tag, or the tag followed by ':'.
        """
        tag = self.store.tag(service_id)
        logger.debug("Converting %s (%s) to image id", service_id, tag)
        for image in self.client.list_images():
            for repo_tag in image.repo_tags:
                if repo_tag == tag or repo_tag.startswith(tag + ":"):
                    logger.debug("Using %s (%s) for %s", image.id, repo_tag, service_id)
                    return ImageLookup.found(image.id)
        logger.debug("Could not find image id for %s (tag %s)", service_id, tag)
        return ImageLookup.not_found()

    def image_exists(self, service_id: ServiceId) -> bool:
        return self.find_image_id(service_id).is_found

    def is_running(self, service_id: ServiceId) -> bool:
        candidate = self.find_container(service_id)
        if candidate is None:
            return False
        return any(c.id == candidate.id for c in self.client.list_containers(all=False))

    # -- lifecycle ---------------------------------------------------------

    def build(self, service_id: ServiceId) -> None:
        """
        Prepares the build context and builds the image under the service's tag.

        :raises BuildError: If the build log lacks the success marker.
        """
        logger.info("Package %s", service_id)
        try:
            path = self.context_provider.prepare(
                service_id, self.store.src(service_id), self.store.config(service_id)
            )
        except OSError as e:
            raise OrchestrationError(f"unable to prepare build context for {service_id}: {e}") from e

        tag = self.store.tag(service_id)
        flags = self.settings.build_flags
        logger.info("Building %s from %s as %s", service_id, path, tag)
        lines = []
        for line in self.client.build_image(
            path,
            tag,
            no_cache=BuildFlag.NO_CACHE in flags,
            remove_intermediate=BuildFlag.REMOVE_INTERMEDIATE_IMAGES in flags,
        ):
            logger.debug(line.rstrip())
            lines.append(line)

        log = "".join(lines)
        if BUILD_SUCCESS_MARKER not in log:
            raise BuildError(f"failed to build {service_id}, log missing lines in {log}", log=log)
        self.snooze()

    def start(self, service_id: ServiceId) -> StartAction:
        """
        Brings the service's container up, then runs its health checks.

        - no container: create and start one
        - container from a different image id: force-remove it, create and start
        - container from the current image, running: nothing
        - container from the current image, stopped: start it
        """
        existing = self.find_container(service_id)

        if existing is None:
            logger.info("No existing container for %s so creating and starting new one", service_id)
            self._start_container(self._create_container(service_id), service_id)
            action = StartAction.CREATE
        elif not self._image_matches(existing, service_id):
            logger.info("Image ids do not match for %s, removing container and creating new one", service_id)
            self.client.remove_container(existing.id, force=True)
            self._start_container(self._create_container(service_id), service_id)
            action = StartAction.RECREATE
        elif self.is_running(service_id):
            logger.info("Container %s already running", service_id)
            action = StartAction.NONE
        else:
            logger.info("Starting existing container %s", existing.id)
            self._start_container(existing.id, service_id)
            action = StartAction.RESUME

        self.snooze()
        self.health_checker.check(service_id, self.store.config(service_id).health_checks)
        return action

    def stop(self, service_id: ServiceId) -> None:
        for container in self.find_containers(service_id, all=False):
            logger.info("Stopping %s", list(container.names))
            self.client.stop_container(container.id, timeout=self.settings.stop_timeout)
            self.snooze()

    def clean(self, service_id: ServiceId) -> None:
        """
        Stops the service, removes all its containers, then its image.
        A missing image, or a failure removing it, is only logged.
        """
        self.stop(service_id)
        logger.info("Clean %s", service_id)
        for container in self.find_containers(service_id, all=True):
            logger.info("Removing container %s", container.id)
            self.client.remove_container(container.id, force=True)

        lookup = self.find_image_id(service_id)
        if not lookup.is_found:
            logger.warning("Image %s not found", service_id)
        else:
            logger.info("Removing image %s", lookup.image_id)
            try:
                self.client.remove_image(lookup.image_id, force=True)
            except ContainerRuntimeError as e:
                logger.warning("Unable to remove image %s: %s", lookup.image_id, e)
        self.snooze()

    def push(self, service_id: ServiceId) -> None:
        ref = ImageReference.parse(self.store.image_name(service_id))
        logger.info("Pushing %s", ref)
        auth = self.client.registry_auth(ref.registry)
        for status in self.client.push_image(ref.name, ref.tag, auth):
            if status.get("error"):
                raise ContainerRuntimeError(f"push of {ref} failed: {status['error']}")
            logger.debug(status.get("status", ""))
        self.snooze()

    def snooze(self) -> None:
        """Pauses for the configured pacing delay, if any."""
        if self.settings.snooze_ms <= 0:
            return
        logger.info("Snoozing for %dms", self.settings.snooze_ms)
        try:
            self._sleep(self.settings.snooze_ms / 1000.0)
        except KeyboardInterrupt as e:
            raise OrchestrationError("interrupted while snoozing") from e

    # -- helpers -----------------------------------------------------------

    def _image_matches(self, container: ContainerRecord, service_id: ServiceId) -> bool:
        container_image_id = self.client.inspect_container_image(container.id)
        lookup = self.find_image_id(service_id)
        return lookup.is_found and container_image_id == lookup.image_id

    def _create_container(self, service_id: ServiceId) -> str:
        logger.info("Creating %s", service_id)
        lookup = self.find_image_id(service_id)
        if not lookup.is_found:
            raise ContainerRuntimeError(
                f"image {self.store.tag(service_id)} for {service_id} not found"
            )
        conf = self.store.config(service_id)
        logger.info(" - env %s", conf.env)
        container_id = self.client.create_container(
            lookup.image_id,
            name=self.store.container_name(service_id),
            env=[f"{k}={v}" for k, v in conf.env.items()],
            host_config=self.host_config(service_id),
        )
        self.snooze()
        return container_id

    def _start_container(self, container_id: str, service_id: ServiceId) -> None:
        logger.info("Starting %s", service_id)
        self.client.start_container(container_id)
        self.plugin_host.notify_started(str(service_id))

    def host_config(self, service_id: ServiceId) -> HostConfig:
        """
        Published ports, volume binds and resolved links for the service.

        :raises ConfigurationError: On a malformed port spec.
        :raises ContainerRuntimeError: If a link target has no container.
        """
        conf = self.store.config(service_id)

        logger.info(" - links %s", [f"{link.id}:{link.alias}" for link in conf.links])
        links = []
        for link in conf.links:
            target = self.find_container(link.id)
            if target is None:
                raise ContainerRuntimeError(
                    f"container for {link.id} (linked from {service_id}) not found"
                )
            links.append((self._link_name(target.names), link.alias))

        port_bindings: Dict[int, int] = {}
        for spec in conf.ports:
            logger.info(" - port %s", spec)
            container_port, host_port = self._parse_port(spec, service_id)
            port_bindings[container_port] = host_port

        binds: Dict[str, str] = {}
        for volume_path, host_path in conf.volumes.items():
            path = os.path.abspath(host_path)
            logger.info(" - volumes %s <- %s", volume_path, path)
            binds[volume_path] = path

        return HostConfig(port_bindings=port_bindings, binds=binds, links=links)

    @staticmethod
    def _parse_port(spec: str, service_id: ServiceId):
        parts = spec.split()
        if len(parts) not in (1, 2):
            raise ConfigurationError(f"invalid port {spec!r} for {service_id}, expected 'container[ host]'")
        try:
            container_port = int(parts[0])
            host_port = int(parts[1]) if len(parts) == 2 else container_port
        except ValueError:
            raise ConfigurationError(f"invalid port {spec!r} for {service_id}") from None
        return container_port, host_port

    @staticmethod
    def _link_name(names: Sequence[str]) -> str:
        # runtime names carry a leading '/'; names of links into other containers contain a further '/'
        for name in names:
            stripped = name.lstrip("/")
            if "/" not in stripped:
                return stripped
        raise ContainerRuntimeError(f"no usable container name in {list(names)}")
