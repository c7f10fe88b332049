"""
Lifecycle notification plugins.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Tuple

from ..exceptions import PluginNotFoundError

logger = logging.getLogger(__name__)


class Plugin(ABC):
    """
    Observer of lifecycle events.

    Subclasses set ``tag`` to a stable name the plugin is looked up by.
    """
    tag: str = ""

    @abstractmethod
    def started(self, service_id: str) -> None:
        """Called after a service's container has been started."""


class PluginHost:
    """
    Holds the plugins given at construction and notifies them synchronously,
    in registration order.
    """

    def __init__(self, plugins: Iterable[Plugin] = ()):
        """
        :param plugins: Plugin instances, in notification order.
        :raises ValueError: If a plugin has no tag or two plugins share one.
        """
        self._plugins: Tuple[Plugin, ...] = tuple(plugins)
        seen = set()
        for plugin in self._plugins:
            if not plugin.tag:
                raise ValueError(f"plugin {plugin!r} has no tag")
            if plugin.tag in seen:
                raise ValueError(f"duplicate plugin tag {plugin.tag!r}")
            seen.add(plugin.tag)
            logger.info("loaded %s plugin", plugin.tag)

    @property
    def plugins(self) -> Tuple[Plugin, ...]:
        return self._plugins

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(p.tag for p in self._plugins)

    def notify_started(self, service_id: str) -> None:
        for plugin in self._plugins:
            plugin.started(service_id)

    def get(self, tag: str) -> Plugin:
        """
        Returns the plugin registered under ``tag``.

        :raises PluginNotFoundError: If no plugin carries that tag.
        """
        for plugin in self._plugins:
            if plugin.tag == tag:
                return plugin
        raise PluginNotFoundError(f"unable to find plugin {tag!r}")
