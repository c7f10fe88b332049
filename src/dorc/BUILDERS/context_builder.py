"""
Builders preparing the directory an image is built from.
"""
import fnmatch
import logging
import os
import shutil
from typing import Mapping, Optional, Protocol, Sequence

from ..MODELS.service_definition import ServiceConfig
from ..MODELS.service_id import ServiceId
from ..UTILS.string_interpolation import PropertyInterpolator

logger = logging.getLogger(__name__)

DEFAULT_FILTER = ("Dockerfile", "*.conf")


class BuildContextProvider(Protocol):
    def prepare(self, service_id: ServiceId, src_dir: str, config: ServiceConfig) -> str:
        """Returns a ready-to-build directory, or raises OSError."""
        ...


class FileContextBuilder:
    """
    Copies a service's source directory into a work directory and
    substitutes properties into the files matching the filter.
    """
    def __init__(
        self,
        work_dir: str,
        properties: Optional[Mapping[str, str]] = None,
        filter: Sequence[str] = DEFAULT_FILTER,
    ):
        """
        Initializes the FileContextBuilder.

        :param work_dir: Directory the per-service build contexts are written under.
        :param properties: Values for ${name} placeholders.
        :param filter: Glob patterns of file names to interpolate.
        """
        self.work_dir = work_dir
        self.properties = dict(properties or {})
        self.filter = tuple(filter)

    def prepare(self, service_id: ServiceId, src_dir: str, config: ServiceConfig) -> str:
        """
        Builds the context for one service. A previous context is replaced.

        :param service_id: The service being built.
        :param src_dir: The service's source directory.
        :param config: The service's resolved config.
        :return: Path to the prepared directory.
        :raises FileNotFoundError: If the source directory does not exist.
        """
        if not os.path.isdir(src_dir):
            raise FileNotFoundError(f"source directory {src_dir} for {service_id} not found")

        dest = os.path.join(self.work_dir, str(service_id))
        if os.path.exists(dest):
            shutil.rmtree(dest)
        os.makedirs(self.work_dir, exist_ok=True)
        logger.info("Preparing build context for %s in %s", service_id, dest)
        shutil.copytree(src_dir, dest)

        for root, _, files in os.walk(dest):
            for name in files:
                if self._matches(name):
                    self._interpolate(os.path.join(root, name))
        return dest

    def _matches(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.filter)

    def _interpolate(self, path: str) -> None:
        try:
            with open(path, 'r') as f:
                content = f.read()
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", path)
            return
        with open(path, 'w') as f:
            f.write(PropertyInterpolator.interpolate(content, self.properties))
