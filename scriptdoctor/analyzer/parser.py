"""Tree-sitter parser for JavaScript and TypeScript sources."""
from pathlib import Path
from typing import Optional, Tuple
from tree_sitter import Language, Parser, Tree, Node
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

from scriptdoctor.errors import ParseError


class LanguageParser:
    """JS/TS parser using tree-sitter v0.25+ API.

    A parse is strict: a tree containing ERROR or MISSING nodes counts as
    a failed parse, since tree-sitter always recovers and returns a tree.
    """

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.jsx': 'javascript',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language.

        Args:
            language: One of 'javascript', 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Build a tree-sitter Parser for self.language.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'javascript':
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: bytes, file_path: Optional[str | Path] = None) -> Tree:
        """Parse source bytes, rejecting trees that carry syntax errors.

        Args:
            source_code: Raw file content
            file_path: Used only for error messages

        Returns:
            Parsed Tree object

        Raises:
            ParseError: If the tree contains error or missing nodes
        """
        tree = self.parser.parse(source_code)
        if tree.root_node.has_error:
            line, column = first_error_position(tree.root_node)
            raise ParseError(
                f"Syntax error at line {line}, column {column}",
                file_path,
            )
        return tree

    def parse_file(self, file_path: str | Path) -> Tree:
        """Read and parse a file from disk.

        Args:
            file_path: Path to source file to parse

        Returns:
            Parsed Tree object

        Raises:
            ParseError: If the file cannot be read or does not parse cleanly
        """
        file_path = Path(file_path)
        try:
            source_code = file_path.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read file: {e}", file_path) from e
        return self.parse_source(source_code, file_path)

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Args:
            file_path: Path to determine language from

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        language = cls.language_for(file_path)
        if language:
            return cls(language)
        return None

    @classmethod
    def language_for(cls, file_path: str | Path) -> Optional[str]:
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())


def first_error_position(root: Node) -> Tuple[int, int]:
    """Return the 1-based (line, column) of the first ERROR or MISSING node."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1, node.start_point[1] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1, root.start_point[1] + 1
