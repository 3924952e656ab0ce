"""Centralized configuration for the chapterflow package.

Provides paths, defaults, and environment configuration
used across all modules.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Working directory (where the user runs the CLI from)
WORKING_DIR = Path.cwd()

# Load environment variables from current working directory
# This ensures .env is found where the user runs chapterflow, not in site-packages
load_dotenv(WORKING_DIR / ".env")

# Run configuration files, searched in this order
CONFIG_FILENAMES = ("config.yaml", "config.yml")

# Default folders (relative to working directory) when config omits them
DEFAULT_INPUT_FOLDER = Path("input")
DEFAULT_OUTPUT_FOLDER = Path("output")
DEFAULT_GLOSSARY_FOLDER = Path("glossaries")

# File extensions for the three stores
CHAPTER_SUFFIX = ".txt"
GLOSSARY_SUFFIX = ".json"

# LLM Configuration
DEFAULT_TEMPERATURE = 0.2
REQUEST_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "300"))  # seconds

# Default models per provider (override with {PROVIDER}_MODEL env var)
# API keys expected in .env or config.yaml:
#   ANTHROPIC_API_KEY, GEMINI_API_KEY, MISTRAL_API_KEY, OPENAI_API_KEY
DEFAULT_MODELS = {
    "anthropic": os.getenv("ANTHROPIC_MODEL", "claude-haiku-4-5"),
    "gemini": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
    "mistral": os.getenv("MISTRAL_MODEL", "mistral-large-latest"),
    "ollama": os.getenv("OLLAMA_MODEL", "qwen2.5:7b"),
    "openai": os.getenv("OPENAI_MODEL", "gpt-4o"),
}

# OpenAI-compatible endpoints for providers served through ChatOpenAI
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

# Retry Configuration (provider-level only, chapters are never retried)
MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
RETRY_BASE_DELAY = float(os.getenv("LLM_RETRY_DELAY", "1.0"))  # seconds
RETRY_MAX_DELAY = float(os.getenv("LLM_RETRY_MAX_DELAY", "30.0"))  # seconds

# Prompt constraints defaults
DEFAULT_MAX_SUMMARY_LENGTH = int(os.getenv("CHAPTERFLOW_SUMMARY_LEN", "500"))
DEFAULT_MAX_DICTIONARY_SIZE = int(os.getenv("CHAPTERFLOW_GLOSSARY_LIMIT", "50"))
