#!filepath: autoperf/connectors/__init__.py
# importing the modules fills the connector registry
from .memory import MemoryConnector
from .json_connector import JSONConnector
from .csv_connector import CSVConnector
from .multi_connector import MultiConnector

__all__ = ["MemoryConnector", "JSONConnector", "CSVConnector", "MultiConnector"]
