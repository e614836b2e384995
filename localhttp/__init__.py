"""
localhttp - a minimal HTTP/1.1 client for daemons listening on local sockets
"""

import pkgutil
import warnings

# localhttp version, set before the shortcuts below since the default
# settings read it on import
__version__ = (pkgutil.get_data(__package__, "VERSION") or b"").decode("ascii").strip()
version_info = tuple(int(v) if v.isdigit() else v for v in __version__.split("."))

# Declare top-level shortcuts
from localhttp.core.reply import Reply, ReplyState  # noqa: E402
from localhttp.core.webclient import ReplyClientFactory, request_unix  # noqa: E402
from localhttp.http import ReplyError, Request  # noqa: E402

__all__ = [
    "Reply",
    "ReplyClientFactory",
    "ReplyError",
    "ReplyState",
    "Request",
    "__version__",
    "request_unix",
    "version_info",
]


# Ignore noisy twisted deprecation warnings
warnings.filterwarnings("ignore", category=DeprecationWarning, module="twisted")


del pkgutil
del warnings
