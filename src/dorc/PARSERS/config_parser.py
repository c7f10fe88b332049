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
Parsers for the aggregate docker.yml declaration and per-service conf.yml files.
"""
import logging
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..MODELS.service_definition import ServiceConfig
from ..MODELS.service_id import ServiceId
from ..UTILS.string_interpolation import PropertyInterpolator

logger = logging.getLogger(__name__)


class ServiceConfigParser:
    """
    Parser for service declarations. Raw text is interpolated with the
    supplied properties before the YAML is read.
    """
    def __init__(self, properties: Optional[Mapping[str, str]] = None):
        """
        Initializes the parser with the properties used for interpolation.

        :param properties: Placeholder values by name.
        """
        self.properties = dict(properties or {})

    def parse_aggregate(self, path: str) -> Dict[ServiceId, ServiceConfig]:
        """
        Parses an aggregate declaration file, keeping declaration order.

        :param path: Path to the docker.yml file.
        :return: Configs by service id.
        """
        content = self._read(path)
        return self.parse_aggregate_from_string(content, source=path)

    def parse_aggregate_from_string(self, content: str, source: str = "<string>") -> Dict[ServiceId, ServiceConfig]:
        """
        Parses an aggregate declaration from a string.

        :param content: YAML mapping of service id to config block.
        :param source: Name used in error messages.
        :return: Configs by service id, in declaration order.
        """
        data = self._load(content, source)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{source}: expected a mapping of service id to config")

        confs: Dict[ServiceId, ServiceConfig] = {}
        for name, spec in data.items():
            try:
                service_id = ServiceId(str(name))
            except ValueError as e:
                raise ConfigurationError(f"{source}: {e}") from e
            if service_id in confs:
                raise ConfigurationError(f"{source}: service {service_id} is declared more than once")
            confs[service_id] = self._to_config(spec, f"{source} [{service_id}]")
        logger.debug("Parsed %d service(s) from %s", len(confs), source)
        return confs

    def parse_service(self, path: str) -> ServiceConfig:
        """
        Parses a single service's conf.yml. An empty file gives the default config.

        :param path: Path to the conf.yml file.
        :return: The service's config.
        """
        content = self._read(path)
        return self.parse_service_from_string(content, source=path)

    def parse_service_from_string(self, content: str, source: str = "<string>") -> ServiceConfig:
        return self._to_config(self._load(content, source), source)

    @staticmethod
    def _read(path: str) -> str:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"{path}: not valid UTF-8: {e}") from e

    def _load(self, content: str, source: str) -> Any:
        content = PropertyInterpolator.interpolate(content, self.properties)
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{source}: malformed YAML: {e}") from e

    def _to_config(self, spec: Any, source: str) -> ServiceConfig:
        """
        Validates one config block.

        :param spec: The parsed YAML block (None means all defaults).
        :param source: Name used in error messages.
        :return: A ServiceConfig instance.
        """
        if spec is None:
            return ServiceConfig()
        if not isinstance(spec, dict):
            raise ConfigurationError(f"{source}: expected a mapping, got {type(spec).__name__}")
        try:
            return ServiceConfig.model_validate(spec)
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"{source}: invalid config: {e}") from e
