"""Conversational task planning built on LangChain and LangGraph."""

__version__ = "0.1.0"
