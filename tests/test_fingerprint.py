"""Tests for structural fingerprints and duplicate grouping."""
from scriptdoctor.analyzer.fingerprint import (
    DuplicateFinder,
    EXEMPLAR_LENGTH,
    fingerprint,
    group_duplicates,
    summarize_block,
)

ALPHA = """function alpha(a, b) {
  // add things up
  const total = a + b;
  const doubled = total * 2;
  return doubled;
}
"""

BETA = """function beta(x, y) {
  const sum = x + y;

  const twice    = sum * 2;
  return twice;
}
"""

GAMMA = """function gamma(a, b) {
  const total = a - b;
  const doubled = total * 2;
  return doubled;
}
"""

DELTA = """function delta(p, q) {
  const total = p + q
  const doubled = total * 2
  return doubled
}
"""


def _body_fingerprint(parse_js, code):
    tree, source = parse_js(code)
    function = tree.root_node.named_children[0]
    return fingerprint(function.child_by_field_name('body'), source)


class TestFingerprint:
    """Names, comments and layout never affect the hash; structure does."""

    def test_renamed_and_reformatted_bodies_match(self, parse_js):
        assert _body_fingerprint(parse_js, ALPHA).hash == _body_fingerprint(parse_js, BETA).hash

    def test_semicolon_style_ignored(self, parse_js):
        assert _body_fingerprint(parse_js, ALPHA).hash == _body_fingerprint(parse_js, DELTA).hash

    def test_different_operator_differs(self, parse_js):
        assert _body_fingerprint(parse_js, ALPHA).hash != _body_fingerprint(parse_js, GAMMA).hash

    def test_digest_is_sha256(self, parse_js):
        fp = _body_fingerprint(parse_js, ALPHA)
        assert len(fp.hash) == 32
        assert len(fp.hex) == 64

    def test_exemplar_strips_braces(self, parse_js):
        fp = _body_fingerprint(parse_js, ALPHA)
        assert fp.exemplar_text.startswith("// add things up")
        assert fp.exemplar_text.endswith("return doubled;")


class TestSummarizeBlock:
    def test_short_block(self):
        assert summarize_block("{ return 1; }") == "return 1;"

    def test_long_block_truncated(self):
        text = "{ " + "x" * 400 + " }"
        summary = summarize_block(text)
        assert summary.endswith("...")
        assert len(summary) == EXEMPLAR_LENGTH + 3


class TestDuplicateFinder:
    """Only bodies spanning more than min_lines are fingerprinted."""

    def test_small_functions_skipped(self, parse_js):
        tree, source = parse_js("function tiny() { return 1; }\nconst t = () => 2;\n")
        assert DuplicateFinder().collect(tree, source, 'a.js') == []

    def test_location_and_name(self, parse_js):
        tree, source = parse_js("\n" + ALPHA)
        entries = DuplicateFinder().collect(tree, source, 'a.js')
        assert len(entries) == 1
        _, location = entries[0]
        assert (location.file, location.start_line, location.end_line, location.name) == \
            ('a.js', 2, 7, 'alpha')

    def test_arrow_binding_name(self, parse_js):
        code = ALPHA.replace("function alpha(a, b) {", "const alpha = (a, b) => {").rstrip() + ";\n"
        tree, source = parse_js(code)
        entries = DuplicateFinder().collect(tree, source, 'a.js')
        assert [location.name for _, location in entries] == ['alpha']

    def test_min_lines_threshold(self, parse_js):
        tree, source = parse_js(ALPHA)
        assert DuplicateFinder(min_lines=10).collect(tree, source, 'a.js') == []


class TestGroupDuplicates:
    def _entries(self, parse_js):
        entries = []
        for file_name, code in (('b.js', BETA), ('a.js', ALPHA), ('c.js', GAMMA)):
            tree, source = parse_js(code)
            entries.extend(DuplicateFinder().collect(tree, source, file_name))
        return entries

    def test_groups_of_two_or_more(self, parse_js):
        groups = group_duplicates(self._entries(parse_js))
        assert len(groups) == 1
        group = groups[0]
        assert group.duplicate_count == 2
        assert [loc.file for loc in group.locations] == ['a.js', 'b.js']
        assert group.file == 'a.js'

    def test_order_independent(self, parse_js):
        entries = self._entries(parse_js)
        assert group_duplicates(entries) == group_duplicates(list(reversed(entries)))
