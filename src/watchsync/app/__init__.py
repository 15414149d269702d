from . import events  # noqa: E402
from .utility_routes import utility

__all__ = [
    "events",
    "utility",
]
