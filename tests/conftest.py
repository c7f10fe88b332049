"""
Shared fixtures: an in-memory container runtime and helpers for laying out
a service source directory.
"""
import itertools

import pytest

from dorc.exceptions import ContainerRuntimeError
from dorc.MANAGERS.config_store import ConfigStore
from dorc.MANAGERS.health_checker import HealthChecker
from dorc.MANAGERS.service_orchestrator import ServiceOrchestrator
from dorc.MODELS.orchestrator_settings import OrchestratorSettings
from dorc.MODELS.runtime_records import ContainerRecord, ImageRecord
from dorc.PLUGINS.plugin_host import Plugin

SUCCESS_LOG = ["Step 1/1 : FROM busybox\n", " ---> 1234\n", "Successfully built 1234\n"]

MUTATING = {
    "create_container",
    "start_container",
    "stop_container",
    "remove_container",
    "remove_image",
    "build_image",
    "push_image",
}


class FakeRuntimeClient:
    """
    In-memory RuntimeClient recording every call.
    Building an image registers it under the requested tag.
    """

    def __init__(self):
        self.containers = {}  # id -> dict(image, names, running, image_id)
        self.images = []
        self.calls = []
        self.build_log = list(SUCCESS_LOG)
        self.push_statuses = [{"status": "Pushed"}]
        self._ids = itertools.count(1)

    # -- helpers for tests --

    def add_image(self, image_id, *repo_tags):
        self.images.append(ImageRecord(id=image_id, repo_tags=tuple(repo_tags)))

    def add_container(self, container_id, name, image_id, running=False, image=None):
        self.containers[container_id] = {
            "image": image or image_id,
            "names": (name,),
            "running": running,
            "image_id": image_id,
        }

    def calls_to(self, method):
        return [c for c in self.calls if c[0] == method]

    @property
    def mutating_calls(self):
        return [c for c in self.calls if c[0] in MUTATING]

    # -- RuntimeClient --

    def list_containers(self, all=False):
        self.calls.append(("list_containers", all))
        return [
            ContainerRecord(id=cid, image=c["image"], names=c["names"], running=c["running"])
            for cid, c in self.containers.items()
            if all or c["running"]
        ]

    def inspect_container_image(self, container_id):
        self.calls.append(("inspect_container_image", container_id))
        if container_id not in self.containers:
            raise ContainerRuntimeError(f"no such container {container_id}")
        return self.containers[container_id]["image_id"]

    def create_container(self, image, name, env, host_config):
        self.calls.append(("create_container", image, name, tuple(env), host_config))
        container_id = f"c{next(self._ids)}"
        self.add_container(container_id, name if name.startswith("/") else "/" + name, image)
        return container_id

    def start_container(self, container_id):
        self.calls.append(("start_container", container_id))
        self.containers[container_id]["running"] = True

    def stop_container(self, container_id, timeout):
        self.calls.append(("stop_container", container_id, timeout))
        self.containers[container_id]["running"] = False

    def remove_container(self, container_id, force=False):
        self.calls.append(("remove_container", container_id, force))
        if container_id not in self.containers:
            raise ContainerRuntimeError(f"no such container {container_id}")
        del self.containers[container_id]

    def list_images(self):
        self.calls.append(("list_images",))
        return list(self.images)

    def remove_image(self, image_id, force=False):
        self.calls.append(("remove_image", image_id, force))
        self.images = [i for i in self.images if i.id != image_id]

    def build_image(self, path, tag, no_cache=False, remove_intermediate=False):
        self.calls.append(("build_image", path, tag, no_cache, remove_intermediate))
        if any("Successfully built" in line for line in self.build_log):
            self.add_image(f"sha256:{tag}", f"{tag}:latest")
        return iter(self.build_log)

    def push_image(self, repository, tag, auth):
        self.calls.append(("push_image", repository, tag, auth))
        return iter(self.push_statuses)

    def registry_auth(self, registry=None):
        self.calls.append(("registry_auth", registry))
        return {"username": "user", "password": "secret"}


class StubContextProvider:
    """Returns the service's source directory unchanged."""

    def __init__(self):
        self.prepared = []

    def prepare(self, service_id, src_dir, config):
        self.prepared.append(service_id)
        return src_dir


class RecordingPlugin(Plugin):
    tag = "recording"

    def __init__(self, events=None):
        self.events = events if events is not None else []

    def started(self, service_id):
        self.events.append(("started", service_id))


class RecordingPinger:
    def __init__(self, results=None):
        self.results = results or {}
        self.pinged = []

    def __call__(self, url, timeout_ms):
        self.pinged.append((url, timeout_ms))
        return self.results.get(url, True)


def write_src(root, docker_yml=None, services=None):
    """
    Lays out a source directory.

    :param docker_yml: Content of docker.yml, or None for no file.
    :param services: {id: conf.yml content or None for just a directory}.
    """
    src = root / "src"
    src.mkdir()
    if docker_yml is not None:
        (src / "docker.yml").write_text(docker_yml)
    for name, conf in (services or {}).items():
        d = src / name
        d.mkdir()
        (d / "Dockerfile").write_text("FROM busybox\n")
        if conf is not None:
            (d / "conf.yml").write_text(conf)
    return str(src)


@pytest.fixture
def client():
    return FakeRuntimeClient()


@pytest.fixture
def pinger():
    return RecordingPinger()


@pytest.fixture
def plugin():
    return RecordingPlugin()


@pytest.fixture
def make_orchestrator(tmp_path, client, pinger, plugin):
    """
    Builds an orchestrator over a fresh source directory using the fake
    runtime, a stub context provider and a recording pinger.
    """
    def factory(docker_yml=None, services=None, settings=None, sleep=None):
        src = write_src(tmp_path, docker_yml, services)
        settings = settings or OrchestratorSettings(namespace="ns", project="proj")
        store = ConfigStore(src, settings.namespace, settings.project)
        kwargs = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        return ServiceOrchestrator(
            store,
            client,
            StubContextProvider(),
            settings=settings,
            plugins=[plugin],
            health_checker=HealthChecker(pinger),
            **kwargs,
        )
    return factory
