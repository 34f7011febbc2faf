"""Tests for chainops.templates."""

from unittest.mock import MagicMock, patch

import pytest

from chainops.errors import ConfigError
from chainops.templates import TaskTemplate, TemplateContext, TemplateRegistry
from chainops.templates.registry import ENTRY_POINT_GROUP

from tests.conftest import RecordingTemplate, make_template


class TestTemplateRegistry:

    def test_register_and_create(self, context):
        registry = TemplateRegistry(context)
        registry.register("Gas", make_template())

        template = registry.create("Gas")
        assert isinstance(template, RecordingTemplate)
        assert template.context is context

    def test_create_returns_fresh_instances(self, templates):
        assert templates.create("SimpleTemplate") is not templates.create("SimpleTemplate")

    def test_factory_function(self, context):
        registry = TemplateRegistry(context)
        factory = MagicMock(side_effect=lambda ctx: make_template()(ctx))
        registry.register("Gas", factory)

        registry.create("Gas")
        factory.assert_called_once_with(context)

    def test_unknown_name(self, templates):
        with pytest.raises(ConfigError, match=r"No template registered for: Gas\. Registered: \['SimpleTemplate'\]"):
            templates.create("Gas")

    def test_factory_must_return_template(self, context):
        registry = TemplateRegistry(context)
        registry.register("Bad", lambda ctx: object())
        with pytest.raises(ConfigError, match="not a TaskTemplate"):
            registry.create("Bad")

    def test_listing(self, templates):
        templates.register("Another", make_template())
        assert templates.has("Another")
        assert not templates.has("Missing")
        assert templates.list_templates() == ["Another", "SimpleTemplate"]

    def test_default_context(self):
        registry = TemplateRegistry()
        assert isinstance(registry.context, TemplateContext)
        assert registry.context.state is None


class TestEntryPoints:

    def test_discovers_templates(self, context):
        template_cls = make_template()
        ep = MagicMock()
        ep.name = "GasConfigTemplate"
        ep.value = "mytemplates.gas:GasConfigTemplate"
        ep.load.return_value = template_cls

        eps = MagicMock()
        eps.select.return_value = [ep]

        with patch("chainops.templates.registry.entry_points", return_value=eps):
            registry = TemplateRegistry.from_entry_points(context)

        eps.select.assert_called_once_with(group=ENTRY_POINT_GROUP)
        assert registry.list_templates() == ["GasConfigTemplate"]
        assert isinstance(registry.create("GasConfigTemplate"), template_cls)

    def test_no_entry_points(self):
        eps = MagicMock()
        eps.select.return_value = []
        with patch("chainops.templates.registry.entry_points", return_value=eps):
            assert TemplateRegistry.from_entry_points().list_templates() == []


class TestTaskTemplate:

    def test_is_abstract(self):
        with pytest.raises(TypeError):
            TaskTemplate()

    def test_default_context(self):
        assert make_template()().context == TemplateContext()
