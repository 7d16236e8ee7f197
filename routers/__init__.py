from .farms import router as farms_router
from .sheds import router as sheds_router
from .slots import router as slots_router
from .animals import router as animals_router
from .assign import router as assign_router
from .session import router as session_router

__all__ = ["farms_router", "sheds_router", "slots_router", "animals_router", "assign_router", "session_router"]
