from cafm.repositories.maintenance.history_gateway import (
    HistoryGateway,
    InMemoryHistoryGateway,
)

__all__ = [
    "HistoryGateway",
    "InMemoryHistoryGateway",
]
