"""
Configuration settings for ReplyDesk.

Centralized configuration for the response lifecycle, generation and analytics.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"
OUTPUT_ROOT = PROJECT_ROOT / "output"
STORE_PATH = DATA_ROOT / "replydesk.json"

# API Configuration
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# LLM Models
GENERATION_MODEL = os.getenv("REPLYDESK_MODEL", "gemini-1.5-flash")
GENERATION_MODEL_ADVANCED = os.getenv("REPLYDESK_MODEL_ADVANCED", "gemini-1.5-pro")

# Some variety is wanted in replies, unlike extraction tasks
LLM_TEMPERATURE = 0.7
GENERATION_MAX_OUTPUT_TOKENS = 300

# Publishing platform constraints
RESPONSE_CHARACTER_LIMIT = 500

# Templates
DEFAULT_RESTAURANT_NAME = "our restaurant"

# Analytics
RECENT_REVIEWS_LIMIT = 5

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "replydesk.log"
