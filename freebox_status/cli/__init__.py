"""
Command Line Interface Package for Freebox Status Monitor

- args.py: Argument parsing and validation
- formatters.py: JSON line output and run summary
- logging_setup.py: Logging configuration
- main.py: Main orchestration and entry point

License: MIT
"""

from .main import main

__all__ = ["main"]
