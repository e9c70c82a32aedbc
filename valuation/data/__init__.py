"""Storage backends for saved models and scenarios."""

from .storage import (
    StorageError, DCFModel, DCFScenario, DataService,
    LocalFileDataService, SqlDataService, get_data_service,
)

__all__ = [
    "StorageError", "DCFModel", "DCFScenario", "DataService",
    "LocalFileDataService", "SqlDataService", "get_data_service",
]
