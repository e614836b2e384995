"""This module contains the default values for all settings used by localhttp.

localhttp developers, if you add a setting here remember to:

* add it in alphabetical order, with the exception that enabling flags and
  other high-level settings for a group should come first in their group
* group similar settings without leaving blank lines
"""

from importlib import import_module

__all__ = [
    "LOG_DATEFORMAT",
    "LOG_ENABLED",
    "LOG_ENCODING",
    "LOG_FILE",
    "LOG_FILE_APPEND",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "LOG_SHORT_NAMES",
    "REPLY_CONNECT_TIMEOUT",
    "REPLY_HOST",
    "REPLY_SETTLE_DELAY",
    "REPLY_TIMEOUT",
    "USER_AGENT",
]

LOG_ENABLED = True
LOG_DATEFORMAT = "%Y-%m-%d %H:%M:%S"
LOG_ENCODING = "utf-8"
LOG_FILE = None
LOG_FILE_APPEND = True
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_LEVEL = "DEBUG"
LOG_SHORT_NAMES = False

REPLY_CONNECT_TIMEOUT = 30
# The transport is not routed by host name, any value will do
REPLY_HOST = "localhttp"
REPLY_SETTLE_DELAY = 0.0
REPLY_TIMEOUT = 180  # 3mins

USER_AGENT = f"localhttp/{import_module('localhttp').__version__}"
