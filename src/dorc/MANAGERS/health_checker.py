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
Health checking for started services: blocks until every declared ping
endpoint responds, failing on the first one that does not.
"""
import logging
from typing import Callable, Optional

from ..exceptions import HealthCheckError
from ..MODELS.service_definition import HealthChecks
from ..MODELS.service_id import ServiceId
from ..UTILS import pinger

logger = logging.getLogger(__name__)

# (url, timeout_ms) -> responded in time
Pinger = Callable[[str, int], bool]


class HealthChecker:
    """
    Gates a service being considered up on its health check pings.
    """

    def __init__(self, ping: Optional[Pinger] = None):
        """
        Initializes the health checker.

        :param ping: Callable polling one endpoint until it responds or its
            timeout elapses. Defaults to an HTTP poller.
        """
        self.ping = ping or pinger.ping

    def check(self, service_id: ServiceId, health_checks: HealthChecks) -> None:
        """
        Runs the pings in declaration order.

        :param service_id: The service being checked, for logging.
        :param health_checks: The service's declared pings.
        :raises HealthCheckError: On the first ping that does not respond;
            later pings are not run.
        """
        for p in health_checks.pings:
            logger.info("Pinging %s for %s (timeout %dms)", p.url, service_id, p.timeout_ms)
            if not self.ping(p.url, p.timeout_ms):
                raise HealthCheckError(p.url, p.timeout_ms)
            logger.info("%s responded", p.url)
