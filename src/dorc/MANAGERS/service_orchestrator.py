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
Orchestration for multiple services, applying lifecycle operations in
dependency order.
"""
import logging
import time
from typing import Callable, Iterable, List, Mapping, Optional, Union

from ..BUILDERS.context_builder import BuildContextProvider, FileContextBuilder
from ..MODELS.orchestrator_settings import OrchestratorSettings
from ..MODELS.service_id import ServiceId
from ..PLUGINS.plugin_host import Plugin, PluginHost
from ..RUNNERS.runtime_client import DockerRuntimeClient, RuntimeClient
from .config_store import ConfigStore
from .health_checker import HealthChecker
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

IdLike = Union[ServiceId, str]


class ServiceOrchestrator:
    """
    Builds, starts, stops, cleans and pushes services.

    Every operation takes an optional service id. Without one it runs over
    all services, one at a time: build, start and push with dependencies
    first, stop and clean with dependents first. The first failure aborts
    the operation.
    """
    def __init__(
        self,
        store: ConfigStore,
        client: RuntimeClient,
        context_provider: BuildContextProvider,
        settings: Optional[OrchestratorSettings] = None,
        plugins: Iterable[Plugin] = (),
        health_checker: Optional[HealthChecker] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initializes the orchestrator.

        :param store: Configuration of all services.
        :param client: Container runtime client.
        :param context_provider: Prepares each service's build directory.
        :param settings: Naming, build and pacing options.
        :param plugins: Lifecycle plugins, in notification order.
        :param health_checker: Runs health check pings after a start.
        """
        self.store = store
        self.settings = settings or OrchestratorSettings(
            namespace=store.namespace, project=store.project
        )
        self.plugin_host = PluginHost(plugins)
        self.reconciler = Reconciler(
            store,
            client,
            context_provider,
            health_checker or HealthChecker(),
            self.plugin_host,
            self.settings,
            sleep=sleep,
        )

    @classmethod
    def from_directory(
        cls,
        src: str,
        settings: OrchestratorSettings,
        properties: Optional[Mapping[str, str]] = None,
        client: Optional[RuntimeClient] = None,
        plugins: Iterable[Plugin] = (),
    ) -> "ServiceOrchestrator":
        """
        Loads the services under ``src`` and wires up the default Docker
        client and file-copying build context builder.
        """
        store = ConfigStore(src, settings.namespace, settings.project, properties)
        return cls(
            store,
            client if client is not None else DockerRuntimeClient(),
            FileContextBuilder(settings.work_dir, properties),
            settings=settings,
            plugins=plugins,
        )

    def ids(self, reverse: bool = False) -> List[ServiceId]:
        """
        All service ids, dependencies first (or last, with ``reverse``).

        :raises DependencyError: On a cycle or a link to an unknown id.
        """
        return self.store.ids(reverse)

    def _targets(self, service_id: Optional[IdLike], reverse: bool) -> List[ServiceId]:
        if service_id is None:
            return self.ids(reverse)
        if not isinstance(service_id, ServiceId):
            service_id = ServiceId(service_id)
        self.store.config(service_id)  # fail fast on unknown ids
        return [service_id]

    def build(self, service_id: Optional[IdLike] = None) -> None:
        for i in self._targets(service_id, reverse=False):
            self.reconciler.build(i)

    def start(self, service_id: Optional[IdLike] = None) -> None:
        """
        Starts services, building any whose image does not exist yet.
        """
        for i in self._targets(service_id, reverse=False):
            if not self.reconciler.image_exists(i):
                self.reconciler.build(i)
            self.reconciler.start(i)

    def stop(self, service_id: Optional[IdLike] = None) -> None:
        for i in self._targets(service_id, reverse=True):
            self.reconciler.stop(i)

    def clean(self, service_id: Optional[IdLike] = None) -> None:
        """
        Stops services and removes their containers and images.
        """
        for i in self._targets(service_id, reverse=True):
            self.reconciler.clean(i)

    def push(self, service_id: Optional[IdLike] = None) -> None:
        for i in self._targets(service_id, reverse=False):
            self.reconciler.push(i)

    def is_running(self, service_id: Optional[IdLike] = None) -> bool:
        """
        True if every targeted service has a running container.
        """
        return all(self.reconciler.is_running(i) for i in self._targets(service_id, reverse=False))

    def ps(self) -> Mapping[ServiceId, bool]:
        """
        Whether each service is running, in dependency order.
        """
        return {i: self.reconciler.is_running(i) for i in self.ids()}

    def plugin(self, tag: str) -> Plugin:
        return self.plugin_host.get(tag)
