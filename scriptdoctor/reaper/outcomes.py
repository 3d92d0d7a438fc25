"""Per-file results of a safe-mutation transaction."""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Tuple, Union


class RollbackReason(str, Enum):
    GENERATION_ERROR = "generation_error"
    TOO_AGGRESSIVE = "too_aggressive"
    SYNTAX_ERROR = "syntax_error"
    INTERNAL_ERROR = "internal_error"


class SkipReason(str, Enum):
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class Committed:
    """Edits passed every gate. Written to disk unless dry_run."""
    file: str
    lines_removed: int
    nodes_removed: int
    removed_names: Tuple[str, ...] = ()
    dry_run: bool = False
    status: ClassVar[str] = "committed"

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "status": self.status,
            "linesRemoved": self.lines_removed,
            "nodesRemoved": self.nodes_removed,
            "removedNames": list(self.removed_names),
            "written": not self.dry_run,
        }


@dataclass(frozen=True)
class RolledBack:
    """A gate failed after planning; the file was left untouched."""
    file: str
    reason: RollbackReason
    message: str = ""
    status: ClassVar[str] = "rolled_back"

    def to_dict(self) -> Dict:
        return {"file": self.file, "status": self.status,
                "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True)
class Skipped:
    """The file could not be read or parsed before planning."""
    file: str
    reason: SkipReason
    message: str = ""
    status: ClassVar[str] = "skipped"

    def to_dict(self) -> Dict:
        return {"file": self.file, "status": self.status,
                "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True)
class NoOp:
    """No targeted node was found in the file."""
    file: str
    status: ClassVar[str] = "no_op"

    def to_dict(self) -> Dict:
        return {"file": self.file, "status": self.status}


MutationOutcome = Union[Committed, RolledBack, Skipped, NoOp]
