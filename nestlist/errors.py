"""Engine errors. Local, synchronous, recoverable conditions.

Engines raise these before touching any state; the service propagates
them unchanged and the routers map them to HTTP status codes.
"""


class EngineError(Exception):
    kind = "EngineError"

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(message)


class NotFoundError(EngineError):
    kind = "NotFound"

    def __init__(self, entity: str, entity_id: str | None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}", detail=entity_id)


class InvalidMoveError(EngineError):
    kind = "InvalidMove"


class DepthExceededError(EngineError):
    kind = "DepthExceeded"

    def __init__(self, required_depth: int, max_depth: int) -> None:
        self.required_depth = required_depth
        self.max_depth = max_depth
        super().__init__(
            f"Nesting depth {required_depth} exceeds the maximum of {max_depth}",
            detail=str(required_depth),
        )


class InvalidOperationError(EngineError):
    kind = "InvalidOperation"
