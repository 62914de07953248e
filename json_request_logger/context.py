"""Request data as seen by the record builder."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Upload:
    """Uploaded file descriptor as it appears inside request params."""

    content_type: str | None = None
    filename: str | None = None
    path: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "content_type": self.content_type,
            "filename": self.filename,
            "path": self.path,
        }


@dataclass
class RequestContext:
    method: str
    path: str
    status: int | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None
    # Route endpoint identity, e.g. module and function name
    controller: str | None = None
    action: str | None = None
    # Free-form stores, only read by extra_attributes_fn
    assigns: dict[str, Any] = field(default_factory=dict)
    private: dict[str, Any] = field(default_factory=dict)
