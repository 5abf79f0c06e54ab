"""Prompt templates and response parsers for LLM calls."""
