from functools import lru_cache

from converter.app.coordinator.coordinator import ConversionCoordinator


@lru_cache()
def get_coordinator() -> ConversionCoordinator:
    return ConversionCoordinator()
