"""Utility functions for chapterflow."""

from chapterflow.utils.json_extract import extract_json_object, parse_analysis_response
from chapterflow.utils.llm_factory import clear_cache, create_llm
from chapterflow.utils.template import render_template, validate_variables

__all__ = [
    # JSON extraction
    "extract_json_object",
    "parse_analysis_response",
    # LLM factory
    "create_llm",
    "clear_cache",
    # Templates
    "render_template",
    "validate_variables",
]
