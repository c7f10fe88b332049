"""
Unit tests for build context preparation.
"""
import pytest

from dorc.BUILDERS.context_builder import FileContextBuilder
from dorc.MODELS.service_definition import ServiceConfig
from dorc.MODELS.service_id import ServiceId


@pytest.fixture
def service_src(tmp_path):
    src = tmp_path / "src" / "web"
    src.mkdir(parents=True)
    (src / "Dockerfile").write_text("FROM python:${python}\nLABEL v=${missing}\n")
    (src / "nginx.conf").write_text("listen ${port};\n")
    (src / "app.py").write_text("print('${port}')\n")
    (src / "logo.conf").write_bytes(b"\xff\xfe\x00binary")
    return src


class TestFileContextBuilder:

    def test_copies_and_interpolates_matching_files(self, tmp_path, service_src):
        builder = FileContextBuilder(str(tmp_path / "work"), {"python": "3.12", "port": "80"})
        dest = tmp_path / "work" / "web"
        assert builder.prepare(ServiceId("web"), str(service_src), ServiceConfig()) == str(dest)
        assert (dest / "Dockerfile").read_text() == "FROM python:3.12\nLABEL v=${missing}\n"
        assert (dest / "nginx.conf").read_text() == "listen 80;\n"
        assert (dest / "app.py").read_text() == "print('${port}')\n"
        assert (dest / "logo.conf").read_bytes() == b"\xff\xfe\x00binary"

    def test_previous_context_replaced(self, tmp_path, service_src):
        stale = tmp_path / "work" / "web"
        stale.mkdir(parents=True)
        (stale / "stale.txt").write_text("old")
        FileContextBuilder(str(tmp_path / "work")).prepare(ServiceId("web"), str(service_src), ServiceConfig())
        assert not (stale / "stale.txt").exists()
        assert (stale / "Dockerfile").exists()

    def test_custom_filter(self, tmp_path, service_src):
        builder = FileContextBuilder(str(tmp_path / "work"), {"port": "80"}, filter=["*.py"])
        builder.prepare(ServiceId("web"), str(service_src), ServiceConfig())
        assert (tmp_path / "work" / "web" / "app.py").read_text() == "print('80')\n"

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileContextBuilder(str(tmp_path / "work")).prepare(
                ServiceId("web"), str(tmp_path / "nope"), ServiceConfig()
            )
