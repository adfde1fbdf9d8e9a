# Core business logic
from .monitor import Monitor, parse_balance, evaluate_balance
from .service import MonitorService

__all__ = [
    "Monitor",
    "parse_balance",
    "evaluate_balance",
    "MonitorService",
]
