from .station import (
    Station,
    StationCreate,
    StationCreated,
    StationDetail,
    StationStatus,
    StationUpdate,
    TrainRef,
)
from .train import (
    StationSummary,
    Train,
    TrainDescriptor,
    TrainDetail,
    TrainPatch,
    TrainUpdated,
)

__all__ = [
    "Station",
    "StationCreate",
    "StationCreated",
    "StationDetail",
    "StationStatus",
    "StationUpdate",
    "TrainRef",
    "StationSummary",
    "Train",
    "TrainDescriptor",
    "TrainDetail",
    "TrainPatch",
    "TrainUpdated",
]
