"""LLM-backed adapters."""

from pubmed_notifier.adapters.llm.claude_translator import ClaudeTranslator

__all__ = ["ClaudeTranslator"]
