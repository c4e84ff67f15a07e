#!filepath: autoperf/extensions/__init__.py
# importing the modules fills the extension registry
from .pipeline import ExtensionPipeline, HOOKS
from .budgets import BudgetsExtension

__all__ = ["ExtensionPipeline", "HOOKS", "BudgetsExtension"]
