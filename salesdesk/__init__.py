"""Salesdesk: backend services for the website sales assistant.

Components:
    logging_config.py: structlog setup shared by every module
    scheduling/: natural-language meeting scheduler on Microsoft Graph
"""

from pathlib import Path


PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"

__version__ = "0.1.0"
