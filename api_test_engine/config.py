"""
Configuration settings for the API test engine.
"""

import os

# Transport timeout in seconds
try:
    DEFAULT_TIMEOUT = float(os.environ.get("API_TEST_TIMEOUT", "30"))
except ValueError:
    DEFAULT_TIMEOUT = 30.0

# Logging level used by the command line runner
LOG_LEVEL = os.environ.get("API_TEST_LOG_LEVEL", "INFO").upper()

# Whether the default transport follows redirects before handing back a response
FOLLOW_REDIRECTS = os.environ.get("API_TEST_FOLLOW_REDIRECTS", "").lower() in (
    "1",
    "true",
    "yes",
)

# Status code accepted by the default verify predicate
DEFAULT_SUCCESS_STATUS = 200

# Methods that never carry the default empty body
BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# Name and description given to an engine when none is supplied
DEFAULT_ENGINE_NAME = "Engine"

# File extensions recognised as test plans
PLAN_EXTENSIONS = [".json"]
