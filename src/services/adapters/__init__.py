"""
Backend Adapters

One adapter per AI backend, all implementing BaseBackendAdapter: the
pipeline hands over (topic, source text) and gets the model's raw reply.
"""

from .base_adapter import BaseBackendAdapter
from .hosted_model_adapter import HostedModelAdapter
from .local_model_adapter import LocalModelAdapter

__all__ = [
    "BaseBackendAdapter",
    "HostedModelAdapter",
    "LocalModelAdapter",
]
