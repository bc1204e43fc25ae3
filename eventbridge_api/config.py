from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    hostname: str = Field(default="localhost", alias="HOSTNAME")
    environment: str = Field(default="development", alias="NODE_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    aws_region: str = Field(default="eu-west-1", alias="AWS_REGION")
    eventbridge_endpoint: str | None = Field(default=None, alias="EVENTBRIDGE_ENDPOINT")
    event_bus_name: str = Field(default="default", alias="EVENT_BUS_NAME")

    dd_api_key: str = Field(default="", alias="DD_API_KEY")
    dd_agent_host: str = Field(default="localhost", alias="DD_AGENT_HOST")
    dd_agent_port: int = Field(default=8125, alias="DD_AGENT_PORT")
    dd_service: str = Field(default="eventbridge-api", alias="DD_SERVICE")
    dd_metric_prefix: str = Field(default="eventbridge.api", alias="DD_METRIC_PREFIX")
    dd_tags: str = Field(default="", alias="DD_TAGS")
    dd_log_intake_url: str = Field(
        default="https://http-intake.logs.datadoghq.com/v1/input",
        alias="DD_LOG_INTAKE_URL",
    )

    @property
    def global_tags(self) -> list[str]:
        tags = [tag.strip() for tag in self.dd_tags.split(",") if tag.strip()]
        if tags:
            return tags
        return [f"env:{self.environment}", f"service:{self.dd_service}"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
