"""HTTP route modules. Each exposes a create_*_router(state) factory."""

from .agents import create_agents_router
from .health import create_health_router
from .state import AppState

__all__ = ["AppState", "create_agents_router", "create_health_router"]
