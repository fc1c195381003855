"""HTTP Tool for the chatrelay framework.

This module provides a tool that issues an HTTP request whose URL,
headers and body are templated from the arguments the model supplies.

Public Interface:
    - HttpToolConfig: Request template of an HTTP tool
    - create_http_tool(): Create the tool definition
    - execute_http_request(): Perform one templated request

Examples:
    >>> tool = create_http_tool(
    ...     name="get_weather",
    ...     description="Gets weather data for a city",
    ...     url="https://api.example.com/weather/${city}",
    ...     transport=AiohttpTransport(),
    ... )
    >>> await tool.execute({"city": "London"})
    {'status': 200, 'headers': {...}, 'data': {...}}
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Final, Optional, Union

from chatrelay.core.template import TemplateEngine
from chatrelay.core.transport import Transport
from chatrelay.types import ToolDefinition
from chatrelay.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)

BODYLESS_METHODS: Final = frozenset({"GET", "HEAD"})


def parse_headers(headers: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """Accept headers as a dict or JSON text; unparseable text yields no headers."""
    if headers is None:
        return {}
    if isinstance(headers, dict):
        return dict(headers)
    try:
        parsed = json.loads(headers)
    except ValueError:
        logger.warning("Ignoring unparseable HTTP tool headers")
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass(frozen=True)
class HttpToolConfig:
    """Request template of an HTTP tool.

    Attributes:
        method: HTTP method
        url: URL template
        headers: Header templates; keys and string values are templated
        body: Body template; a templated body that parses as JSON is sent as JSON
        timeout: Request timeout in seconds
    """
    url: str
    method: str = "GET"
    headers: Dict[str, Any] = field(default_factory=dict)
    body: Optional[str] = None
    timeout: Optional[float] = None


def template_data(arguments: Any) -> Dict[str, Any]:
    """Expose the arguments at the template root and under ``input``."""
    if isinstance(arguments, dict):
        data = dict(arguments)
        data.setdefault("input", arguments)
        return data
    return {"input": arguments}


async def execute_http_request(
    config: HttpToolConfig,
    arguments: Any,
    transport: Transport
) -> Dict[str, Any]:
    """Perform one templated request.

    Args:
        config: The request template
        arguments: Arguments supplied by the model
        transport: Transport used to send the request

    Returns:
        ``{"status", "headers", "data"}`` of the response, whatever its status

    Raises:
        TransportError: If no response could be obtained
    """
    start_time = time.time()
    data = template_data(arguments)
    method = config.method.upper()

    url = TemplateEngine.substitute(config.url, data)
    headers = {
        str(TemplateEngine.substitute(key, data)): TemplateEngine.substitute(value, data)
        for key, value in config.headers.items()
    }

    json_body: Any = None
    raw_body: Any = None
    if method not in BODYLESS_METHODS and config.body is not None:
        rendered = TemplateEngine.substitute(config.body, data)
        try:
            json_body = json.loads(rendered)
        except (TypeError, ValueError):
            raw_body = rendered

    try:
        response = await transport.request(
            method,
            url,
            headers={key: str(value) for key, value in headers.items()},
            json=json_body,
            data=raw_body,
            timeout=config.timeout
        )
    except Exception as e:
        logger.error("HTTP tool request failed", extra={
            "method": method,
            "url": sanitize_log_message(url),
            "error": sanitize_log_message(str(e))
        })
        raise

    duration = time.time() - start_time
    logger.info("HTTP tool request completed", extra={
        "method": method,
        "url": sanitize_log_message(url),
        "status": response.status,
        "duration_ms": int(duration * 1000)
    })
    return {
        "status": response.status,
        "headers": response.headers,
        "data": response.data,
    }


def create_http_tool(
    name: str,
    description: str = "HTTP request tool",
    *,
    url: str,
    transport: Transport,
    method: str = "GET",
    headers: Union[str, Dict[str, Any], None] = None,
    body: Optional[str] = None,
    parameters: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None
) -> ToolDefinition:
    """Create an HTTP tool definition.

    Args:
        name: Tool name offered to the model
        description: Tool description offered to the model
        url: URL template
        transport: Transport used to send requests
        method: HTTP method
        headers: Header templates as a dict or JSON text
        body: Body template
        parameters: JSON schema of the arguments; defaults to an empty object schema
        timeout: Request timeout in seconds

    Returns:
        Tool definition whose executor performs the request
    """
    config = HttpToolConfig(
        url=url,
        method=method,
        headers=parse_headers(headers),
        body=body,
        timeout=timeout
    )

    async def _execute(arguments: Any) -> Dict[str, Any]:
        return await execute_http_request(config, arguments, transport)

    return ToolDefinition(
        name=name,
        description=description,
        parameters=parameters,
        execute=_execute
    )
