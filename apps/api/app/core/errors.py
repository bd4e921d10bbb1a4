from __future__ import annotations

# Callable error categories and the HTTP status each maps to.
ERROR_STATUS = {
    "unauthenticated": 401,
    "invalid-argument": 400,
    "not-found": 404,
    "permission-denied": 403,
    "failed-precondition": 409,
    "internal": 500,
}


class CallableError(Exception):
    """
    Categorized error raised by callable endpoints.

    `code` and `message` are the observable contract for callers.
    """

    def __init__(self, code: str, message: str) -> None:
        if code not in ERROR_STATUS:
            raise ValueError(f"Unknown error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def http_status(self) -> int:
        return ERROR_STATUS[self.code]

    def to_dict(self) -> dict:
        return {"error": {"status": self.code, "message": self.message}}
