"""
Hierarchical HTTP test engine.

Builds one request per endpoint from an Engine -> Site -> Module -> Endpoint
tree and reports each outcome back to every level.
"""

from api_test_engine.core.containers import Module, Site
from api_test_engine.core.dispatch import Outcome
from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.engine import Engine
from api_test_engine.core.merge import EffectiveRequest
from api_test_engine.core.node import ConfigNode, HTTPMethod
from api_test_engine.utils.http_transport import HttpxTransport, Transport, TransportError

__version__ = "0.1.0"

__all__ = [
    "ConfigNode",
    "EffectiveRequest",
    "Endpoint",
    "Engine",
    "HTTPMethod",
    "HttpxTransport",
    "Module",
    "Outcome",
    "Site",
    "Transport",
    "TransportError",
]
