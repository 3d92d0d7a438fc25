"""Definition/usage indexing across a whole project.

Reading and parsing fan out over asyncio; the indexing passes themselves
are pure functions over the parsed sources, merged in sorted path order
so the result never depends on which read finished first.
"""
import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
from rich.markup import escape
from tree_sitter import Tree

from scriptdoctor.config import AnalysisOptions
from scriptdoctor.errors import ParseError
from scriptdoctor.utils.file_system import DEFAULT_IGNORE, DEFAULT_SOURCE_PATTERNS, FileSystem
from scriptdoctor.utils.safe_console import diagnostics
from .channel_tracker import ChannelTracker
from .complexity import ComplexityAnalyzer
from .dead_code import DeadCodeFinder
from .extractor import SymbolExtractor
from .fingerprint import DuplicateFinder, group_duplicates
from .issues import (
    ChannelFact,
    ComplexFunction,
    DeadCodePath,
    DuplicateGroup,
    ParseFailure,
    Symbol,
    UsageFact,
)
from .parser import LanguageParser
from .reference_tracker import ReferenceTracker


@dataclass(frozen=True)
class SourceFile:
    """One successfully parsed file."""
    path: Path
    source: bytes
    tree: Tree


@dataclass(frozen=True)
class IndexResult:
    symbols: Tuple[Symbol, ...] = ()
    usages: Tuple[UsageFact, ...] = ()
    channel_facts: Tuple[ChannelFact, ...] = ()
    duplicates: Tuple[DuplicateGroup, ...] = ()
    dead_code: Tuple[DeadCodePath, ...] = ()
    complex_functions: Tuple[ComplexFunction, ...] = ()
    parse_errors: Tuple[ParseFailure, ...] = ()
    files_indexed: int = 0


def parse_source_file(path: str | Path, source: bytes) -> SourceFile:
    """Parse raw bytes into a SourceFile.

    Raises:
        ParseError: For unsupported extensions, undecodable bytes or
            syntax errors
    """
    path = Path(path)
    parser = LanguageParser.from_file_extension(path)
    if parser is None:
        raise ParseError(f"Unsupported file type: {path.suffix}", path)
    try:
        source.decode('utf-8')
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8: {e}", path) from e
    return SourceFile(path=path, source=source, tree=parser.parse_source(source, path))


def collect_symbols(sources: Sequence[SourceFile]) -> Tuple[Symbol, ...]:
    """First pass. Symbols are keyed by name and the last definition wins."""
    extractor = SymbolExtractor()
    by_name: Dict[str, Symbol] = {}
    for source_file in sources:
        for symbol in extractor.extract(source_file.tree, source_file.source, source_file.path):
            by_name.pop(symbol.name, None)
            by_name[symbol.name] = symbol
    return tuple(by_name.values())


def collect_usages(sources: Sequence[SourceFile], names: Iterable[str]) -> Tuple[UsageFact, ...]:
    """Second pass. One fact per (name, file) where the name is referenced."""
    tracker = ReferenceTracker(names)
    usages = set()
    for source_file in sources:
        usages |= tracker.extract_usages(source_file.tree, source_file.source, source_file.path)
    return tuple(sorted(usages))


def collect_channel_facts(sources: Sequence[SourceFile],
                          options: AnalysisOptions) -> Tuple[ChannelFact, ...]:
    """Third pass over call expressions."""
    tracker = ChannelTracker(options.handler_callees, options.invoke_callees)
    facts: List[ChannelFact] = []
    for source_file in sources:
        facts.extend(tracker.extract(source_file.tree, source_file.source, source_file.path))
    return tuple(facts)


def collect_duplicates(sources: Sequence[SourceFile],
                       options: AnalysisOptions) -> Tuple[DuplicateGroup, ...]:
    finder = DuplicateFinder(options.min_duplicate_lines)
    entries = []
    for source_file in sources:
        entries.extend(finder.collect(source_file.tree, source_file.source, source_file.path))
    return tuple(group_duplicates(entries))


def collect_dead_code(sources: Sequence[SourceFile]) -> Tuple[DeadCodePath, ...]:
    finder = DeadCodeFinder()
    found: List[DeadCodePath] = []
    for source_file in sources:
        found.extend(finder.collect(source_file.tree, source_file.source, source_file.path))
    return tuple(found)


def collect_complex_functions(sources: Sequence[SourceFile],
                              options: AnalysisOptions) -> Tuple[ComplexFunction, ...]:
    analyzer = ComplexityAnalyzer(options.max_complexity)
    found: List[ComplexFunction] = []
    for source_file in sources:
        found.extend(analyzer.collect(source_file.tree, source_file.source, source_file.path))
    return tuple(found)


def index(sources: Sequence[SourceFile], options: Optional[AnalysisOptions] = None,
          parse_errors: Iterable[ParseFailure] = ()) -> IndexResult:
    """Run all indexing passes over already parsed sources.

    Args:
        sources: Parsed files; processed in sorted path order
        options: Analysis knobs, defaults when omitted
        parse_errors: Failures from loading, carried into the result

    Returns:
        IndexResult with symbols, usages, channel facts, duplicate groups,
        unreachable statements and overly complex functions
    """
    options = options or AnalysisOptions()
    ordered = sorted(sources, key=lambda s: str(s.path))
    symbols = collect_symbols(ordered)
    return IndexResult(
        symbols=symbols,
        usages=collect_usages(ordered, {symbol.name for symbol in symbols}),
        channel_facts=collect_channel_facts(ordered, options),
        duplicates=collect_duplicates(ordered, options),
        dead_code=collect_dead_code(ordered),
        complex_functions=collect_complex_functions(ordered, options),
        parse_errors=tuple(sorted(parse_errors, key=lambda failure: failure.file)),
        files_indexed=len(ordered),
    )


def _read_and_parse(path: Path, file_system: FileSystem) -> Union[SourceFile, ParseFailure]:
    try:
        source = file_system.read_file(path)
    except OSError as e:
        return ParseFailure(file=str(path), message=f"Cannot read file: {e}")
    try:
        return parse_source_file(path, source)
    except ParseError as e:
        return ParseFailure(file=str(path), message=e.message)


async def load_sources(paths: Iterable[str | Path], file_system: Optional[FileSystem] = None,
                       verbose: bool = False) -> Tuple[List[SourceFile], List[ParseFailure]]:
    """Read and parse files concurrently.

    Args:
        paths: Files to load
        file_system: File access collaborator, disk by default
        verbose: Report skipped files on the diagnostics console

    Returns:
        (parsed sources, parse failures), both sorted by path
    """
    file_system = file_system or FileSystem()
    results = await asyncio.gather(*(
        asyncio.to_thread(_read_and_parse, Path(path), file_system) for path in paths
    ))

    sources: List[SourceFile] = []
    failures: List[ParseFailure] = []
    for result in results:
        if isinstance(result, ParseFailure):
            failures.append(result)
            if verbose:
                diagnostics.print(f"[yellow]⚠ Skipping {escape(result.file)}: {escape(result.message)}[/yellow]")
        else:
            sources.append(result)
    sources.sort(key=lambda s: str(s.path))
    failures.sort(key=lambda f: f.file)
    return sources, failures


@dataclass(frozen=True)
class ProjectIndex:
    """Index of a project plus the file list it was built from."""
    root: Path
    files: Tuple[Path, ...]
    result: IndexResult = field(default_factory=IndexResult)


async def index_project(root: str | Path, file_system: Optional[FileSystem] = None,
                        options: Optional[AnalysisOptions] = None,
                        patterns: Iterable[str] = DEFAULT_SOURCE_PATTERNS,
                        ignore: Iterable[str] = DEFAULT_IGNORE,
                        verbose: bool = False) -> ProjectIndex:
    """Discover, load and index every source file under root."""
    file_system = file_system or FileSystem()
    root = Path(root)
    files = file_system.find_files(root, patterns, ignore)
    if verbose:
        diagnostics.print(f"🔍 Indexing {len(files)} files under {escape(str(root))}")
    sources, failures = await load_sources(files, file_system, verbose)
    return ProjectIndex(
        root=root,
        files=tuple(files),
        result=index(sources, options, failures),
    )
