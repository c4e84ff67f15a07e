#!filepath: autoperf/config/plugin_config.py
from typing import Dict

from pydantic import BaseModel, Field, field_validator


class PluginConfig(BaseModel):
    """
    Third-party adapters, name -> "package.module:factory".

        plugins:
          gatherers:
            psi: mycompany.perf.psi:PSIGatherer
    """

    gatherers: Dict[str, str] = Field(default_factory=dict)
    connectors: Dict[str, str] = Field(default_factory=dict)
    extensions: Dict[str, str] = Field(default_factory=dict)

    @field_validator("gatherers", "connectors", "extensions")
    @classmethod
    def _module_attr(cls, value: Dict[str, str]) -> Dict[str, str]:
        for name, target in value.items():
            if ":" not in target:
                raise ValueError(f"plugin {name!r}: expected 'module:attr', got {target!r}")
        return value
