"""
Template Registry - map template names to template factories.

The registry is injected into the orchestrator; it is the only place a
template name from a task config turns into template code.

Factories receive the run's TemplateContext and return a fresh TaskTemplate.
A TaskTemplate subclass is itself a valid factory.
"""

import logging
from importlib.metadata import entry_points
from typing import Callable, Optional

from chainops.errors import ConfigError
from chainops.templates.base import TaskTemplate, TemplateContext

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "chainops.templates"

TemplateFactory = Callable[[TemplateContext], TaskTemplate]


class TemplateRegistry:
    """
    Registry for template dispatch by name.

    Usage:
        registry = TemplateRegistry(context)
        registry.register("GasConfigTemplate", GasConfigTemplate)

        template = registry.create("GasConfigTemplate")

        # Or discover installed templates
        registry = TemplateRegistry.from_entry_points(context)
    """

    def __init__(self, context: Optional[TemplateContext] = None) -> None:
        self.context = context or TemplateContext()
        self._factories: dict[str, TemplateFactory] = {}

    def register(self, name: str, factory: TemplateFactory) -> None:
        """
        Register a factory for a template name.

        Args:
            name: Template name as written in task configs (templateName)
            factory: Callable taking a TemplateContext, returning a TaskTemplate
        """
        self._factories[name] = factory

    def has(self, name: str) -> bool:
        return name in self._factories

    def list_templates(self) -> list[str]:
        return sorted(self._factories)

    def create(self, name: str) -> TaskTemplate:
        """
        Instantiate a fresh template.

        Raises:
            ConfigError: If no template is registered under name
        """
        if name not in self._factories:
            raise ConfigError(
                f"No template registered for: {name}. "
                f"Registered: {self.list_templates()}"
            )
        template = self._factories[name](self.context)
        if not isinstance(template, TaskTemplate):
            raise ConfigError(
                f"Factory for {name} returned {type(template).__name__}, not a TaskTemplate"
            )
        return template

    @classmethod
    def from_entry_points(cls, context: Optional[TemplateContext] = None) -> "TemplateRegistry":
        """
        Discover templates from installed `chainops.templates` entry points.

        Entry point name is the template name; its value the factory, e.g.
        GasConfigTemplate = "mytemplates.gas:GasConfigTemplate".
        """
        registry = cls(context)
        for ep in entry_points().select(group=ENTRY_POINT_GROUP):
            registry.register(ep.name, ep.load())
            logger.debug(f"Discovered template {ep.name} ({ep.value})")
        return registry
