from .analytics import DailyCount, OverviewTotals, PopularEntry
from .case import CaseResponse

# Define the public API of this module
__all__ = [
    "DailyCount",
    "OverviewTotals",
    "PopularEntry",
    "CaseResponse",
]
