__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .actors import *
from .argtypes import *
from .arguments import *
from .commands import *
from .definitions import *
from .faults import *
from .hooks import *
from .logs import *
from .matching import *
from .messages import *
from .tokens import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the actors
__all__ += actors.__all__  # type: ignore[attr-defined]
# Load the exposed API of the argument types
__all__ += argtypes.__all__  # type: ignore[attr-defined]
# Load the exposed API of the declarations
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the definition reader
__all__ += definitions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the hook tables
__all__ += hooks.__all__  # type: ignore[attr-defined]
# Load the exposed API of the logging setup
__all__ += logs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the matcher
__all__ += matching.__all__  # type: ignore[attr-defined]
# Load the exposed API of the messages
__all__ += messages.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizers
__all__ += tokens.__all__  # type: ignore[attr-defined]
