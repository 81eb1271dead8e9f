from .extraction import extract_purchase_records
from .harvester import HistoryHarvester

__all__ = ["HistoryHarvester", "extract_purchase_records"]
