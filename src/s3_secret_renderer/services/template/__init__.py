"""Template expression evaluation."""

from .engine import MISSING, TemplateEngine, TemplateFunction, tpl

__all__ = ["MISSING", "TemplateEngine", "TemplateFunction", "tpl"]
