from llmgrep.search.runner import run_search

__all__ = ["run_search"]
