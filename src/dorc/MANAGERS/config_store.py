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
Holds the configuration of every service in a source directory and resolves
the names derived from it.
"""
import logging
import os
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from ..exceptions import ConfigurationError
from ..MODELS.service_definition import ServiceConfig
from ..MODELS.service_id import ServiceId
from ..PARSERS.config_parser import ServiceConfigParser
from ..RUNNERS.dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)

AGGREGATE_FILE = "docker.yml"
SERVICE_FILE = "conf.yml"


class ConfigStore:
    """
    Ordered, read-only mapping of service id to config, loaded once from a
    source directory laid out as::

        src/
          docker.yml        # optional: id -> config block, in start order
          <id>/             # one directory per service (build context)
            conf.yml        # optional: replaces the docker.yml block for <id>

    Ids declared in docker.yml come first, in declaration order. Directories
    not declared there follow in sorted order with a default config.
    """

    def __init__(
        self,
        src: str,
        namespace: str,
        project: str,
        properties: Optional[Mapping[str, str]] = None,
    ):
        """
        :param src: Source directory.
        :param namespace: Repository namespace of default image tags.
        :param project: Project prefix of default image and container names.
        :param properties: Values substituted into ${name} placeholders.
        """
        if not os.path.isdir(src):
            raise ConfigurationError(f"src {src} does not exist or is not a directory")
        self.src_dir = src
        self.namespace = namespace
        self.project = project
        self.resolver = DependencyResolver()

        parser = ServiceConfigParser(properties)
        confs: Dict[ServiceId, ServiceConfig] = {}
        self._read_aggregate(parser, confs)
        self._add_directory_ids(confs)
        self._read_service_files(parser, confs)
        self._confs = MappingProxyType(confs)

    def _read_aggregate(self, parser: ServiceConfigParser, confs: Dict[ServiceId, ServiceConfig]) -> None:
        path = os.path.join(self.src_dir, AGGREGATE_FILE)
        if os.path.exists(path):
            logger.info("reading %s", path)
            try:
                confs.update(parser.parse_aggregate(path))
            except OSError as e:
                raise ConfigurationError(f"unable to read {path}: {e}") from e

    def _add_directory_ids(self, confs: Dict[ServiceId, ServiceConfig]) -> None:
        for name in sorted(os.listdir(self.src_dir)):
            if name.startswith(".") or not os.path.isdir(os.path.join(self.src_dir, name)):
                continue
            try:
                service_id = ServiceId(name)
            except ValueError as e:
                raise ConfigurationError(f"{os.path.join(self.src_dir, name)}: {e}") from e
            if service_id not in confs:
                confs[service_id] = ServiceConfig()

    def _read_service_files(self, parser: ServiceConfigParser, confs: Dict[ServiceId, ServiceConfig]) -> None:
        for service_id in list(confs):
            path = os.path.join(self.src_dir, str(service_id), SERVICE_FILE)
            if os.path.exists(path):
                logger.info("reading %s", path)
                try:
                    confs[service_id] = parser.parse_service(path)
                except OSError as e:
                    raise ConfigurationError(f"unable to read {path}: {e}") from e

    @property
    def configs(self) -> Mapping[ServiceId, ServiceConfig]:
        return self._confs

    def __contains__(self, service_id: ServiceId) -> bool:
        return service_id in self._confs

    def __len__(self) -> int:
        return len(self._confs)

    def config(self, service_id: ServiceId) -> ServiceConfig:
        try:
            return self._confs[service_id]
        except KeyError:
            raise ConfigurationError(f"unknown service {service_id}") from None

    def links_graph(self) -> Dict[ServiceId, List[ServiceId]]:
        """Link target ids of every service, in declaration order."""
        return {service_id: conf.link_ids for service_id, conf in self._confs.items()}

    def ids(self, reverse: bool = False) -> List[ServiceId]:
        """
        Service ids with link targets before the services linking to them,
        or the exact reverse.

        :raises DependencyError: On a cycle or a link to an unknown id.
        """
        return self.resolver.resolve(self.links_graph(), reverse=reverse)

    def image_name(self, service_id: ServiceId) -> str:
        return f"{self.namespace}/{self.project}_{service_id}"

    def tag(self, service_id: ServiceId) -> str:
        conf = self.config(service_id)
        return conf.tag if conf.tag else self.image_name(service_id)

    def container_name(self, service_id: ServiceId) -> str:
        conf = self.config(service_id)
        return conf.container.name if conf.container.name else f"/{self.project}_{service_id}"

    def src(self, service_id: ServiceId) -> str:
        return os.path.join(self.src_dir, str(service_id))
