"""Configuration module.

This module provides configuration management for requests to the remote
completion endpoint, with support for reading from environment variables
and ``.env`` files.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatrelay.core.errors import ConfigurationError
from chatrelay.types import ToolDefinition

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."
DEFAULT_AGENT_NAME = "AI Agent"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
DEFAULT_MEMORY_CAPACITY = 1000


class RelaySettings(BaseSettings):
    """Global settings read from ``CHATRELAY_*`` environment variables.

    Every field may also be supplied through a ``.env`` file or as a
    keyword argument.
    """

    # Model settings
    api_key: Optional[str] = Field(None, description="API key for the completion endpoint")
    model: Optional[str] = Field(None, description="Model identifier")
    temperature: float = Field(DEFAULT_TEMPERATURE, description="Sampling temperature")
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, description="Maximum tokens per completion")
    max_tool_rounds: int = Field(1, description="Tool-call rounds resolved per turn")

    # Endpoint settings
    base_url: str = Field(DEFAULT_BASE_URL, description="Chat completions endpoint URL")
    app_url: str = Field("http://localhost", description="Sent as the HTTP-Referer header")
    app_title: str = Field("chatrelay", description="Sent as the X-Title header")
    request_timeout: float = Field(60.0, description="Request timeout in seconds")
    transport_max_tries: int = Field(1, description="Attempts per request on connection errors")

    # Agent settings
    system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, description="System instructions")
    agent_name: str = Field(DEFAULT_AGENT_NAME, description="Name reported in object responses")
    memory_capacity: int = Field(DEFAULT_MEMORY_CAPACITY, description="Messages kept in memory")

    # Logging settings
    log_level: str = Field("INFO", description="Logging level name")
    log_dir: Optional[str] = Field(None, description="Directory for rotating log files")

    model_config = SettingsConfigDict(
        env_prefix="CHATRELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, env_file: Optional[str] = ".env", **kwargs):
        super().__init__(_env_file=env_file, **kwargs)


class AIRequestConfig(BaseModel):
    """Per-turn model configuration.

    Attributes:
        model: Model identifier sent with every request
        api_key: Secret key sent as a bearer token
        temperature: Sampling temperature in [0, 2]
        max_tokens: Positive completion token limit
        tools: Tools offered to the model
        max_tool_rounds: Tool-call rounds resolved before tools are withdrawn
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: str = ""
    api_key: SecretStr = SecretStr("")
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, gt=0)
    tools: List[ToolDefinition] = Field(default_factory=list)
    max_tool_rounds: int = Field(1, ge=1)

    @field_validator("tools", mode="before")
    @classmethod
    def _coerce_tools(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [
                ToolDefinition.from_dict(tool) if isinstance(tool, dict) else tool
                for tool in value
            ]
        return value

    @classmethod
    def from_settings(
        cls,
        settings: Optional[RelaySettings] = None,
        tools: Optional[List[ToolDefinition]] = None
    ) -> "AIRequestConfig":
        """Create a request config from settings.

        Args:
            settings: Optional settings instance, will load from env if not provided
            tools: Optional tools to offer to the model

        Returns:
            A configured AIRequestConfig instance

        Raises:
            ConfigurationError: If the settings hold out-of-range values
        """
        if settings is None:
            settings = RelaySettings()
        return cls.create(
            model=settings.model or "",
            api_key=settings.api_key or "",
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            max_tool_rounds=settings.max_tool_rounds,
            tools=tools or [],
        )

    @classmethod
    def create(cls, **values: Any) -> "AIRequestConfig":
        """Validate values into a config, reporting problems as ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid AI configuration: {e}") from e

    @classmethod
    def coerce(cls, config: Union["AIRequestConfig", Dict[str, Any], None]) -> "AIRequestConfig":
        if config is None:
            raise ConfigurationError(
                "AI configuration missing. Provide a model and an API key."
            )
        if isinstance(config, cls):
            return config
        if isinstance(config, dict):
            return cls.create(**config)
        raise ConfigurationError(
            f"Unsupported AI configuration type: {type(config).__name__}"
        )

    def ensure_ready(self) -> None:
        """Check that a remote call can be attempted.

        Raises:
            ConfigurationError: If the model or the API key is missing
        """
        if not self.model:
            raise ConfigurationError(
                "AI model not specified. Please configure a valid model."
            )
        if not self.api_key.get_secret_value():
            raise ConfigurationError(
                "API key not found. Please configure a valid API key."
            )


@dataclass
class EndpointConfig:
    """Where and how completion requests are sent.

    Attributes:
        url: Chat completions endpoint
        app_url: Value of the HTTP-Referer identification header
        app_title: Value of the X-Title identification header
        timeout: Request timeout in seconds, None to wait indefinitely
        extra_headers: Additional static headers
    """

    url: str = DEFAULT_BASE_URL
    app_url: str = "http://localhost"
    app_title: str = "chatrelay"
    timeout: Optional[float] = 60.0
    extra_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Optional[RelaySettings] = None) -> "EndpointConfig":
        if settings is None:
            settings = RelaySettings()
        return cls(
            url=settings.base_url,
            app_url=settings.app_url,
            app_title=settings.app_title,
            timeout=settings.request_timeout,
        )
