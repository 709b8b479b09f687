# 📄 File: billing_engine/shared/utils/__init__.py

# 🧭 Purpose (Layman Explanation):
# Collection of helpful tools other parts of the billing engine use, mainly logging.

# 🧪 Purpose (Technical Summary):
# Initializes the utilities package with structured logging helpers.

# 🔗 Dependencies:
# - logging: Structured logging utilities

# 🔄 Connected Modules / Calls From:
# Used by: bootstrap, handlers, event handlers

from .logging import get_logger, log_context, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
]
