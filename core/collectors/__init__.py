from core.collectors import diff_collector

__all__ = ["diff_collector"]
