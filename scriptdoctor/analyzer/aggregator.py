"""Reduce an IndexResult into the sorted Issue list.

Symbols and files become nodes of a reference graph; every UsageFact is
an edge from the referencing file to the symbol it names. A symbol with
no incoming edge is unused, which is the same in-degree test used for
orphan detection.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Set

import networkx as nx

from .indexer import IndexResult, index_project
from .issues import (
    ChannelRole,
    Issue,
    IssueKind,
    ParseFailure,
    SymbolKind,
    UnreferencedHandler,
    UnusedFunction,
    UnusedImport,
    issue_sort_key,
    issues_to_dict,
)


def build_reference_graph(result: IndexResult) -> nx.DiGraph:
    """Build the file -> symbol reference graph.

    Args:
        result: Output of the indexing passes

    Returns:
        DiGraph whose symbol nodes are ('symbol', name) tuples
    """
    graph = nx.DiGraph()
    for symbol in result.symbols:
        graph.add_node(('symbol', symbol.name), symbol=symbol)
    for usage in result.usages:
        target = ('symbol', usage.name)
        if target in graph:
            graph.add_edge(('file', usage.file), target)
    return graph


def unused_symbol_issues(result: IndexResult) -> List[Issue]:
    graph = build_reference_graph(result)
    issues: List[Issue] = []
    for node, data in graph.nodes(data=True):
        if node[0] != 'symbol' or graph.in_degree(node) != 0:
            continue
        symbol = data['symbol']
        if symbol.kind is SymbolKind.IMPORT_BINDING:
            issues.append(UnusedImport(symbol))
        else:
            issues.append(UnusedFunction(symbol))
    return issues


def unreferenced_handler_issues(result: IndexResult) -> List[Issue]:
    """One issue per Defined fact whose channel is never Invoked."""
    invoked: Set[str] = {
        fact.channel for fact in result.channel_facts if fact.role is ChannelRole.INVOKED
    }
    return [
        UnreferencedHandler(fact)
        for fact in result.channel_facts
        if fact.role is ChannelRole.DEFINED and fact.channel not in invoked
    ]


def aggregate(result: IndexResult) -> List[Issue]:
    """Turn indexing output into issues sorted by (file, line).

    Args:
        result: Output of the indexing passes

    Returns:
        UnusedFunction, UnusedImport, DuplicateGroup, UnreferencedHandler,
        DeadCodePath and ComplexFunction issues
    """
    issues: List[Issue] = []
    issues.extend(unused_symbol_issues(result))
    issues.extend(unreferenced_handler_issues(result))
    issues.extend(result.duplicates)
    issues.extend(result.dead_code)
    issues.extend(result.complex_functions)
    return sorted(issues, key=issue_sort_key)


@dataclass(frozen=True)
class AnalysisReport:
    """Issues of one analysis run plus the summary shown to users."""
    issues: List[Issue] = field(default_factory=list)
    parse_errors: List[ParseFailure] = field(default_factory=list)
    files_indexed: int = 0

    def count(self, kind: IssueKind) -> int:
        return sum(1 for issue in self.issues if issue.kind is kind)

    def of_kind(self, kind: IssueKind) -> List[Issue]:
        return [issue for issue in self.issues if issue.kind is kind]

    def summary(self) -> Dict[str, int]:
        return {
            "totalIssues": len(self.issues),
            "filesAnalyzed": self.files_indexed,
            "parseErrors": len(self.parse_errors),
            "unusedFunctions": self.count(IssueKind.UNUSED_FUNCTION),
            "unusedImports": self.count(IssueKind.UNUSED_IMPORT),
            "duplicateCode": self.count(IssueKind.DUPLICATE_GROUP),
            "unusedIpcHandlers": self.count(IssueKind.UNREFERENCED_HANDLER),
            "deadCodePaths": self.count(IssueKind.DEAD_CODE_PATH),
            "complexityIssues": self.count(IssueKind.COMPLEX_FUNCTION),
        }

    def recommendations(self) -> List[Dict]:
        recommendations = []
        unused_functions = self.count(IssueKind.UNUSED_FUNCTION)
        if unused_functions:
            recommendations.append({
                "type": "cleanup",
                "priority": "high",
                "message": f"Remove {unused_functions} unused functions to reduce bundle size",
                "autoFixable": True,
            })
        unused_imports = self.count(IssueKind.UNUSED_IMPORT)
        if unused_imports:
            recommendations.append({
                "type": "cleanup",
                "priority": "medium",
                "message": f"Remove {unused_imports} unused imports to improve build performance",
                "autoFixable": True,
            })
        duplicates = self.count(IssueKind.DUPLICATE_GROUP)
        if duplicates:
            recommendations.append({
                "type": "refactor",
                "priority": "medium",
                "message": f"Refactor {duplicates} duplicate code blocks into reusable functions",
                "autoFixable": False,
            })
        dead_code = self.count(IssueKind.DEAD_CODE_PATH)
        if dead_code:
            recommendations.append({
                "type": "cleanup",
                "priority": "medium",
                "message": f"Remove {dead_code} unreachable statements after return or throw",
                "autoFixable": False,
            })
        complex_functions = self.count(IssueKind.COMPLEX_FUNCTION)
        if complex_functions:
            recommendations.append({
                "type": "refactor",
                "priority": "low",
                "message": f"Break down {complex_functions} overly complex functions",
                "autoFixable": False,
            })
        handlers = self.count(IssueKind.UNREFERENCED_HANDLER)
        if handlers:
            recommendations.append({
                "type": "cleanup",
                "priority": "high",
                "message": f"Remove {handlers} unused IPC handlers to reduce backend surface area",
                "autoFixable": False,
            })
        return recommendations

    def to_dict(self) -> Dict:
        return {
            "summary": self.summary(),
            "details": issues_to_dict(self.issues),
            "parseErrors": [failure.to_dict() for failure in self.parse_errors],
            "recommendations": self.recommendations(),
        }


def build_report(result: IndexResult) -> AnalysisReport:
    return AnalysisReport(
        issues=aggregate(result),
        parse_errors=list(result.parse_errors),
        files_indexed=result.files_indexed,
    )


async def analyze_project(root, file_system=None, options=None, verbose: bool = False,
                          **discovery) -> AnalysisReport:
    """Index everything under root and aggregate the issues.

    Args:
        root: Project directory
        file_system: File access collaborator, disk by default
        options: AnalysisOptions, defaults when omitted
        verbose: Print progress on the diagnostics console
        **discovery: `patterns` / `ignore` overrides for file discovery

    Returns:
        AnalysisReport for the project
    """
    project = await index_project(root, file_system, options, verbose=verbose, **discovery)
    return build_report(project.result)
