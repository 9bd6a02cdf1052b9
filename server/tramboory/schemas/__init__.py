"""Pydantic schemas for request/response validation."""

from .catalog import *  # noqa: F403
from .common import *  # noqa: F403
from .content import *  # noqa: F403
from .finance import *  # noqa: F403
from .health import *  # noqa: F403
from .inventory import *  # noqa: F403
from .post import *  # noqa: F403
from .reservation import *  # noqa: F403
from .supplier import *  # noqa: F403
from .system_config import *  # noqa: F403
