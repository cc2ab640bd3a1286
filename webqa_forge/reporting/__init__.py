from .result_aggregator import ResultAggregator, RunSummary, pass_rate_estimate, summarize, write_specifications

__all__ = ["ResultAggregator", "RunSummary", "pass_rate_estimate", "summarize", "write_specifications"]
