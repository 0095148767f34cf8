"""
Text generation boundary.
"""

from notegraph.boundary.llm.generator import LangChainGenerator, get_chat_model

__all__ = ["LangChainGenerator", "get_chat_model"]
