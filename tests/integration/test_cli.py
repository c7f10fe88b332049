import re

import pytest
from click.testing import CliRunner

from conftest import FakeRuntimeClient, write_src
from dorc.CLI import main as cli_main
from dorc.CLI.main import cli

DB_WEB = "db:\nweb:\n  tag: ${registry:-ns}/web\n  links: [db]\n"
LOG_LINE = re.compile(r"^\d{4}-\d{2}-\d{2} ")


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeRuntimeClient()
    monkeypatch.setattr(cli_main, "DockerRuntimeClient", lambda base_url=None: client)
    return client


@pytest.fixture
def src(tmp_path):
    return write_src(tmp_path, docker_yml=DB_WEB, services={"db": None, "web": None})


def echoed(result):
    """Output lines, without any log records interleaved from stderr."""
    return [line for line in result.output.splitlines() if not LOG_LINE.match(line)]


def run(*args):
    return CliRunner().invoke(cli, list(args), obj={})


def test_cli_help():
    result = run('--help')
    assert result.exit_code == 0
    assert 'interdependent' in result.output
    for command in ('build', 'start', 'stop', 'clean', 'push', 'ids', 'status'):
        assert command in result.output


def test_cli_ids(src, fake_client):
    result = run('--src', src, 'ids')
    assert result.exit_code == 0
    assert echoed(result) == ['db', 'web']


def test_cli_ids_reverse(src, fake_client):
    result = run('--src', src, 'ids', '--reverse')
    assert echoed(result) == ['web', 'db']


def test_cli_missing_src(tmp_path, fake_client):
    result = run('--src', str(tmp_path / 'nope'), 'ids')
    assert result.exit_code == 1
    assert 'Error:' in result.output


def test_cli_start_then_status(src, fake_client, tmp_path):
    result = run('--src', src, '-n', 'acme', '-p', 'shop', '--work-dir', str(tmp_path / 'work'), 'start')
    assert result.exit_code == 0, result.output
    assert 'Services started.' in result.output
    assert [c[2] for c in fake_client.calls_to('build_image')] == ['acme/shop_db', 'ns/web']

    result = run('--src', src, '-n', 'acme', '-p', 'shop', 'status')
    assert result.exit_code == 0
    lines = echoed(result)[2:]
    assert [line.split() for line in lines] == [['db', 'running'], ['web', 'running']]


def test_cli_define_property(src, fake_client, tmp_path):
    result = run('--src', src, '-D', 'registry=registry.local', '--work-dir', str(tmp_path / 'work'), 'build', 'web')
    assert result.exit_code == 0, result.output
    assert [c[2] for c in fake_client.calls_to('build_image')] == ['registry.local/web']


def test_cli_bad_define(src, fake_client):
    result = run('--src', src, '-D', 'novalue', 'ids')
    assert result.exit_code == 2


def test_cli_build_failure_exit_code(src, fake_client, tmp_path):
    fake_client.build_log = ['Step 1/1 : FROM nothing\n']
    result = run('--src', src, '--work-dir', str(tmp_path / 'work'), 'build')
    assert result.exit_code == 1
    assert 'failed to build db' in result.output


def test_cli_unknown_service(src, fake_client):
    result = run('--src', src, 'stop', 'ghost')
    assert result.exit_code == 1
    assert 'unknown service ghost' in result.output
