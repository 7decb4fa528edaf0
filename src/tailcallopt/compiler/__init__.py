from .driver import TailCallOptimizer, OptimizationResult, tail_call_optimise

__all__ = ["TailCallOptimizer", "OptimizationResult", "tail_call_optimise"]
