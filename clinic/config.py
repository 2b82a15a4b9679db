from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreAdapter(Enum):
    MEMORY = "memory"
    REST = "rest"


class RecordsApiConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECORDS_API_", env_file=".env", extra="ignore")

    base_url: str = "http://localhost:8080/api"
    token: str = ""
    timeout: float = 30.0


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLINIC_", env_file=".env", extra="ignore")

    store_adapter: StoreAdapter = StoreAdapter.MEMORY
    records_api: RecordsApiConfig = Field(default_factory=lambda: RecordsApiConfig())
