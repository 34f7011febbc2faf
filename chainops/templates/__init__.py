"""
chainops.templates - Governance action templates and their registry.
"""

from .base import TaskTemplate, TemplateContext
from .registry import ENTRY_POINT_GROUP, TemplateRegistry

__all__ = [
    "ENTRY_POINT_GROUP",
    "TaskTemplate",
    "TemplateContext",
    "TemplateRegistry",
]
