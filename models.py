from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class BookInfo:
    filepath: str
    filename: str
    author:   str
    title:    str
    format:   str  # "epub" or "mobi"


@dataclass(frozen=True)
class CatalogEntry:
    id:       int  # position in this scan only
    filepath: str
    filename: str
    author:   str
    title:    str
    format:   str
    status:   str
    added:    str  # ISO timestamp of the scan

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class BookRequest:
    filepath: str
    title:    str = ""
    author:   str = ""

    @classmethod
    def from_dict(cls, data):
        return cls(
            filepath=data["filepath"],
            title=data.get("title", ""),
            author=data.get("author", ""),
        )


class DeleteStatus(Enum):
    DELETED   = "deleted"    # plain delete worked, or nothing was there
    ESCALATED = "escalated"  # needed the privileged command
    FAILED    = "failed"


@dataclass(frozen=True)
class DeleteOutcome:
    filepath: str
    status:   DeleteStatus
    error:    Optional[BaseException] = None

    @property
    def ok(self):
        return self.status is not DeleteStatus.FAILED


@dataclass(frozen=True)
class BulkDeleteResult:
    deleted: int
    failed:  int


@dataclass(frozen=True)
class DispatchResult:
    requested: int
    sent:      int
    skipped:   List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DiagnosticResult:
    message_id: str
    response:   str
    sender:     str
