"""Value objects produced by indexing and issue aggregation."""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Tuple, Union


class SymbolKind(str, Enum):
    FUNCTION = "Function"
    ARROW_BINDING = "ArrowBinding"
    METHOD = "Method"
    IMPORT_BINDING = "ImportBinding"


class ChannelRole(str, Enum):
    DEFINED = "Defined"
    INVOKED = "Invoked"


class IssueKind(str, Enum):
    UNUSED_FUNCTION = "UnusedFunction"
    UNUSED_IMPORT = "UnusedImport"
    DUPLICATE_GROUP = "DuplicateGroup"
    UNREFERENCED_HANDLER = "UnreferencedHandler"
    DEAD_CODE_PATH = "DeadCodePath"
    COMPLEX_FUNCTION = "ComplexFunction"


@dataclass(frozen=True)
class Symbol:
    """A defined name: function, function binding, class method or import binding."""
    name: str
    file: str
    line: int  # 1-based
    kind: SymbolKind


@dataclass(frozen=True, order=True)
class UsageFact:
    """A reference to a known symbol name somewhere in the project."""
    name: str
    file: str


@dataclass(frozen=True)
class ChannelFact:
    """A handler registration or invocation with a literal channel name."""
    channel: str
    file: str
    line: int
    role: ChannelRole


@dataclass(frozen=True)
class Fingerprint:
    """Digest of a normalized function body plus a short excerpt of it."""
    hash: bytes
    exemplar_text: str

    @property
    def hex(self) -> str:
        return self.hash.hex()


@dataclass(frozen=True, order=True)
class DuplicateLocation:
    file: str
    start_line: int
    end_line: int
    name: str = "<anonymous>"

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "name": self.name,
        }


@dataclass(frozen=True)
class ParseFailure:
    """A file excluded from analysis because it did not read or parse cleanly."""
    file: str
    message: str

    def to_dict(self) -> Dict:
        return {"file": self.file, "error": self.message, "type": "parse_error"}


@dataclass(frozen=True)
class UnusedSymbol:
    """Shared shape of the unused-function and unused-import issues."""
    symbol: Symbol
    kind: ClassVar[IssueKind]

    @property
    def file(self) -> str:
        return self.symbol.file

    @property
    def line(self) -> int:
        return self.symbol.line

    @property
    def name(self) -> str:
        return self.symbol.name

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "location": {"line": self.line},
            "name": self.name,
            "kind": self.kind.value,
            "symbolKind": self.symbol.kind.value,
        }


@dataclass(frozen=True)
class UnusedFunction(UnusedSymbol):
    """A function, function binding or class method nothing refers to."""
    kind: ClassVar[IssueKind] = IssueKind.UNUSED_FUNCTION


@dataclass(frozen=True)
class UnusedImport(UnusedSymbol):
    """An import or require binding nothing refers to."""
    kind: ClassVar[IssueKind] = IssueKind.UNUSED_IMPORT


@dataclass(frozen=True)
class DuplicateGroup:
    """Two or more function bodies sharing one fingerprint."""
    fingerprint: Fingerprint
    locations: Tuple[DuplicateLocation, ...] = field(default_factory=tuple)
    kind: ClassVar[IssueKind] = IssueKind.DUPLICATE_GROUP

    @property
    def file(self) -> str:
        return self.locations[0].file

    @property
    def line(self) -> int:
        return self.locations[0].start_line

    @property
    def name(self) -> str:
        return self.locations[0].name

    @property
    def duplicate_count(self) -> int:
        return len(self.locations)

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "location": {"line": self.line},
            "name": self.name,
            "kind": self.kind.value,
            "hash": self.fingerprint.hex,
            "block": self.fingerprint.exemplar_text,
            "duplicateCount": self.duplicate_count,
            "locations": [loc.to_dict() for loc in self.locations],
        }


@dataclass(frozen=True)
class UnreferencedHandler:
    """A registered channel handler that nothing invokes."""
    fact: ChannelFact
    kind: ClassVar[IssueKind] = IssueKind.UNREFERENCED_HANDLER

    @property
    def file(self) -> str:
        return self.fact.file

    @property
    def line(self) -> int:
        return self.fact.line

    @property
    def name(self) -> str:
        return self.fact.channel

    @property
    def channel(self) -> str:
        return self.fact.channel

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "location": {"line": self.line},
            "name": self.name,
            "kind": self.kind.value,
            "channel": self.channel,
        }


@dataclass(frozen=True)
class DeadCodePath:
    """A statement that can never run because it follows a return or throw."""
    file: str
    line: int
    reason: str  # after-return | after-throw
    code: str
    kind: ClassVar[IssueKind] = IssueKind.DEAD_CODE_PATH

    @property
    def name(self) -> str:
        return self.reason

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "location": {"line": self.line},
            "name": self.name,
            "kind": self.kind.value,
            "reason": self.reason,
            "code": self.code,
        }


@dataclass(frozen=True)
class ComplexFunction:
    """A function whose cyclomatic complexity is above the configured limit."""
    name: str
    file: str
    line: int
    complexity: int
    kind: ClassVar[IssueKind] = IssueKind.COMPLEX_FUNCTION

    def to_dict(self) -> Dict:
        return {
            "file": self.file,
            "location": {"line": self.line},
            "name": self.name,
            "kind": self.kind.value,
            "complexity": self.complexity,
        }


Issue = Union[UnusedFunction, UnusedImport, DuplicateGroup, UnreferencedHandler,
              DeadCodePath, ComplexFunction]


def issue_sort_key(issue: Issue) -> Tuple[str, int, str, str]:
    return (issue.file, issue.line, issue.kind.value, issue.name)


def issues_to_dict(issues: List[Issue]) -> Dict[str, List[Dict]]:
    """Serialize issues grouped by kind, every kind present even when empty."""
    grouped: Dict[str, List[Dict]] = {kind.value: [] for kind in IssueKind}
    for issue in issues:
        grouped[issue.kind.value].append(issue.to_dict())
    return grouped
