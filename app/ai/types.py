from dataclasses import dataclass
from typing import Any, Literal, Protocol


@dataclass(frozen=True)
class BackendResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class GenerationError(RuntimeError):
    def __init__(self, message: str, *, code: str = "upstream_error"):
        super().__init__(message)
        self.code = code


class RequestTimeout(GenerationError):
    def __init__(self, message: str = "Request to webhook timed out"):
        super().__init__(message, code="timeout")


class UpstreamError(GenerationError):
    pass


class GenerationBackend(Protocol):
    name: str

    async def send(self, payload: dict[str, Any]) -> BackendResponse: ...

    async def aclose(self) -> None: ...


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str
