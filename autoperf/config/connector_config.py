#!filepath: autoperf/config/connector_config.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ConnectorConfig(BaseModel):
    """
    type:
        json | csv | memory | <plugin name>
    tests / results / latest:
        store locations for file-backed connectors
    """

    type: str = "json"
    tests: Optional[str] = None
    results: Optional[str] = None
    latest: Optional[str] = None
    # when set and different from type, create_connector wraps both in a
    # MultiConnector: Tests on `type`, Results on `results_type`
    results_type: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)
