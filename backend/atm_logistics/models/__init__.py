from .import_batch import ImportBatch, ImportBatchStatus
from .vendor import Vendor, VendorStatus
from .asset import Asset
from .movement import Movement, MovementStatus
from .costing import Costing, CostingStatus

__all__ = [
    "ImportBatch",
    "ImportBatchStatus",
    "Vendor",
    "VendorStatus",
    "Asset",
    "Movement",
    "MovementStatus",
    "Costing",
    "CostingStatus",
]
