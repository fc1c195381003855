"""Ready-made tool kinds for the chatrelay framework.

- HTTP tool: templated HTTP requests built from the model's arguments
- Function tool: a sandboxed expression transforming the model's arguments
"""

from .http_tool import HttpToolConfig, create_http_tool, execute_http_request
from .function_tool import SafeEvaluator, create_function_tool

__all__ = [
    "HttpToolConfig",
    "create_http_tool",
    "execute_http_request",
    "SafeEvaluator",
    "create_function_tool",
]
