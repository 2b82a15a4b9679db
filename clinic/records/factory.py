from typing import Callable

from loguru import logger

from clinic.config import AppConfig, StoreAdapter
from clinic.records.adapters.memory import InMemoryClinicStore
from clinic.records.adapters.rest import RestClinicStore
from clinic.records.ports import ClinicStoreProtocol


def _build_memory(config: AppConfig) -> ClinicStoreProtocol:
    return InMemoryClinicStore()


def _build_rest(config: AppConfig) -> ClinicStoreProtocol:
    return RestClinicStore(
        config.records_api.base_url,
        token=config.records_api.token,
        timeout=config.records_api.timeout,
    )


_BUILDERS: dict[StoreAdapter, Callable[[AppConfig], ClinicStoreProtocol]] = {
    StoreAdapter.MEMORY: _build_memory,
    StoreAdapter.REST: _build_rest,
}


def build_store(config: AppConfig) -> ClinicStoreProtocol:
    """Build the appropriate record store based on config."""
    adapter = config.store_adapter
    logger.info("Building record store with adapter: {}", adapter.value)
    return _BUILDERS[adapter](config)
