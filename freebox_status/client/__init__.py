"""
Freebox API client package.

- main.py: FreeboxClient, the vendor client used by the adapters
- auth.py: session challenge/response
- http.py: HTTP session, retries and response envelope handling
- parser.py: API results to model objects
"""

from .main import FreeboxClient

__all__ = ["FreeboxClient"]
