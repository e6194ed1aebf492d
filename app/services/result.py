from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ResultError(Exception):
    def __init__(self, error: Optional[str], code: Optional[str]):
        self.error = error
        self.code = code
        super().__init__(f"{code}: {error}")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown", value: Optional[T] = None) -> "Result[T]":
        return Result(ok=False, value=value, error=error, error_code=code)

    def unwrap(self) -> T:
        if not self.ok:
            raise ResultError(self.error, self.error_code)
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
