from __future__ import annotations


class AtsError(RuntimeError):
    """Base error carrying a machine-readable ``code`` next to the message."""

    code = "ats_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


class InvalidFormat(AtsError):
    code = "invalid_format"


class SizeOutOfBounds(AtsError):
    code = "size_out_of_bounds"

    def __init__(self, size: int, *, min_bytes: int, max_bytes: int):
        super().__init__(f"Document size {size} bytes is outside the accepted range {min_bytes}-{max_bytes} bytes.")
        self.size = size
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes


class PartFixFailure(AtsError):
    code = "part_fix_failure"

    def __init__(self, fix: str, message: str):
        super().__init__(f"{fix}: {message}")
        self.fix = fix
