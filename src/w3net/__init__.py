# mypy: disable-error-code="no-redef"
# seems like mypy doesn't respect __all__
from .config import *  # noqa: F403
from .connection import *  # noqa: F403
from .exceptions import *  # noqa: F403
from .hooks import *  # noqa: F403
from .manager import *  # noqa: F403
from .providers import *  # noqa: F403
from .request_modifiers import *  # noqa: F403
from .utils import *  # noqa: F403

__version__ = "0.1.0"
