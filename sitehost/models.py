from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class Request:
    method: str
    target: str
    path: str
    version: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedTarget:
    path: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.path is not None


NOT_FOUND = ResolvedTarget()


@dataclass(frozen=True)
class Response:
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def body_size(self) -> int:
        return len(self.body)
