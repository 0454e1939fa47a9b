"""Error taxonomy shared by the graph store, the services and the agent
loops."""


class GraphError(Exception):
    """Base class for every error raised by the graph layers."""


class NotFoundError(GraphError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str, detail: str = None):
        self.entity = entity
        self.entity_id = entity_id
        message = detail or f"{entity} with ID {entity_id} not found"
        super().__init__(message)


class BadRequestError(GraphError):
    """A well-formed request violates a data invariant."""


ConflictError = BadRequestError


class ExternalCallError(GraphError):
    """A model call or browser tool call failed."""


class CodeGenerationError(GraphError):
    """The agent could not produce code for a scenario."""

    prefix = "Code generation failed: "

    def __init__(self, message: str):
        super().__init__(f"{self.prefix}{message}")


class CodeExecutionError(GraphError):
    """Generated code kept failing until the repair budget ran out."""

    prefix = "Code execution failed: "

    def __init__(
        self,
        message: str,
        code: str = "",
        attempts: int = 0,
        error_message: str = "",
        stack_trace: str = None,
        logs: list = None,
    ):
        super().__init__(f"{self.prefix}{message}")
        self.code = code
        self.attempts = attempts
        self.error_message = error_message
        self.stack_trace = stack_trace
        self.logs = logs or []


# Store-level signals, translated by the service layer.


class RecordNotFound(Exception):
    """An update or delete matched no row."""


class UniqueViolation(Exception):
    """A unique index rejected the write."""


class ReferenceViolation(Exception):
    """A foreign key rejected the write."""
