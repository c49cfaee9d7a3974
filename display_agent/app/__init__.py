from .agent import DisplayAgent, main, parse_args

__all__ = ["DisplayAgent", "main", "parse_args"]
