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
Exceptions raised by the orchestrator.
"""
from typing import List, Optional


class OrchestrationError(Exception):
    """Base class for every failure surfaced by a lifecycle operation."""


class ConfigurationError(OrchestrationError):
    """A declaration could not be read, parsed or validated."""


class DependencyError(ConfigurationError):
    """
    The link graph cannot be ordered: either a cycle exists or a link
    points at an id outside the graph.
    """

    def __init__(self, unresolved: List[str]):
        self.unresolved = list(unresolved)
        super().__init__(
            f"dependency error (e.g. circular dependency) amongst {self.unresolved}"
        )


class ContainerRuntimeError(OrchestrationError):
    """The container runtime reported a failure."""


class BuildError(OrchestrationError):
    """An image build finished without the success marker in its log."""

    def __init__(self, message: str, log: Optional[str] = None):
        super().__init__(message)
        self.log = log


class HealthCheckError(OrchestrationError):
    """A health check ping did not respond within its timeout."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"timeout waiting for {url} for {timeout_ms}ms")


class PluginNotFoundError(OrchestrationError, LookupError):
    """No registered plugin carries the requested tag."""
