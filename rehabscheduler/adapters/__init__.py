"""
Adapters layer - Clinic data sources and text generation backends.
"""

from .generation_client import HttpTextGenerator, MockTextGenerator
from .json_data_source import JsonDataSource, RecordDataSource
from .mock_data_source import MockSchedulingDataSource

__all__ = [
    "HttpTextGenerator",
    "JsonDataSource",
    "MockSchedulingDataSource",
    "MockTextGenerator",
    "RecordDataSource",
]
