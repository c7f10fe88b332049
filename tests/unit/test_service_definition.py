"""
Unit tests for service ids and service config models.
"""
import pytest
from pydantic import ValidationError

from dorc.MODELS.service_definition import Link, Ping, ServiceConfig
from dorc.MODELS.service_id import ServiceId


class TestServiceId:
    """Tests for ServiceId."""

    def test_trims_whitespace(self):
        assert ServiceId("  web ") == ServiceId("web")
        assert str(ServiceId(" web")) == "web"

    def test_equality_is_case_sensitive(self):
        assert ServiceId("Web") != ServiceId("web")
        assert len({ServiceId("web"), ServiceId("web"), ServiceId("WEB")}) == 2

    def test_not_equal_to_plain_string(self):
        assert ServiceId("web") != "web"

    @pytest.mark.parametrize("value", ["", "   ", ".", "..", "a/b", "a\\b"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            ServiceId(value)


class TestLink:
    """Tests for Link parsing."""

    def test_mapping_form(self):
        link = Link.model_validate({"id": "db", "alias": "database"})
        assert link.id == ServiceId("db")
        assert link.alias == "database"

    def test_alias_defaults_to_id(self):
        assert Link.model_validate({"id": "db"}).alias == "db"

    def test_compact_forms(self):
        assert Link.model_validate("db:database") == Link(id=ServiceId("db"), alias="database")
        assert Link.model_validate("db").alias == "db"


class TestServiceConfig:
    """Tests for ServiceConfig defaults and coercion."""

    def test_defaults(self):
        conf = ServiceConfig()
        assert conf.tag is None
        assert conf.container.name is None
        assert conf.env == {}
        assert conf.ports == []
        assert conf.volumes == {}
        assert conf.links == []
        assert conf.health_checks.pings == []

    def test_null_fields_are_defaults(self):
        conf = ServiceConfig.model_validate({"env": None, "links": None, "healthChecks": None})
        assert conf.env == {}
        assert conf.links == []

    def test_env_values_become_text(self):
        conf = ServiceConfig.model_validate({"env": {"DEBUG": True, "WORKERS": 4}})
        assert conf.env == {"DEBUG": "True", "WORKERS": "4"}

    def test_ping_timeout_aliases(self):
        assert Ping.model_validate({"url": "http://a", "timeoutMs": 10}).timeout_ms == 10
        assert Ping.model_validate({"url": "http://a", "timeout": 20}).timeout_ms == 20
        assert Ping.model_validate({"url": "http://a"}).timeout_ms == 60000

    def test_link_ids(self):
        conf = ServiceConfig.model_validate({"links": ["db", {"id": "cache", "alias": "redis"}]})
        assert conf.link_ids == [ServiceId("db"), ServiceId("cache")]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            ServiceConfig.model_validate({"image": "nginx"})
