from .errors import (
    BadRequestError,
    CodeExecutionError,
    CodeGenerationError,
    ConflictError,
    ExternalCallError,
    GraphError,
    NotFoundError,
)
from .store import GraphStore

__all__ = [
    "GraphStore",
    "GraphError",
    "NotFoundError",
    "BadRequestError",
    "ConflictError",
    "ExternalCallError",
    "CodeGenerationError",
    "CodeExecutionError",
]
