"""
NetCheck - site-to-site UDP latency and jitter probe

Every node runs a passive echo responder and, on a fixed period, times a
window of timestamp echoes against each configured remote site. The
average round trip and its jitter are written to InfluxDB.
"""

__version__ = "1.0.0"
__author__ = "NetCheck Authors"
__license__ = "MIT"

from .core.config import Config, Site
from .core.logger import setup_logging

__all__ = ["Config", "Site", "setup_logging"]
