from civicrag.querylog.logger import QueryLogger
from civicrag.querylog.record import Pricing, QueryRecord, calculate_cost, hash_ip
from civicrag.querylog.repository import QueryLogRepository

__all__ = [
    "Pricing",
    "QueryLogRepository",
    "QueryLogger",
    "QueryRecord",
    "calculate_cost",
    "hash_ip",
]
