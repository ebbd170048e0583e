from .engine import TradeOptimizer, OptimizerConfig, optimize, validate_balance
from .metrics import TradeStats, compute_stats
from .baseline import buy_hold_baseline

__all__ = [
    "TradeOptimizer",
    "OptimizerConfig",
    "optimize",
    "validate_balance",
    "TradeStats",
    "compute_stats",
    "buy_hold_baseline",
]
