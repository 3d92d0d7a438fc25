"""Tests for unreachable-statement detection."""
from scriptdoctor.analyzer.dead_code import EXCERPT_LENGTH, DeadCodeFinder


def _dead(parse_js, code):
    tree, source = parse_js(code)
    return DeadCodeFinder().collect(tree, source, 'a.js')


class TestDeadCodeFinder:
    """Only statements after a return or throw in the same block count."""

    def test_after_return(self, parse_js):
        code = "function f() {\n  return 1;\n  console.log('never');\n}\n"
        found = _dead(parse_js, code)
        assert [(d.line, d.reason, d.code) for d in found] == [
            (3, 'after-return', "console.log('never');"),
        ]

    def test_after_throw(self, parse_js):
        code = "function f() {\n  throw new Error('x');\n  cleanup();\n}\n"
        assert [d.reason for d in _dead(parse_js, code)] == ['after-throw']

    def test_comments_between_are_skipped(self, parse_js):
        code = "function f() {\n  return;\n  // explain\n  tidy();\n}\n"
        assert [d.line for d in _dead(parse_js, code)] == [4]

    def test_hoisted_function_is_reachable(self, parse_js):
        code = "function f() {\n  return helper();\n  function helper() { return 1; }\n}\n"
        assert _dead(parse_js, code) == []

    def test_statement_after_hoisted_function_is_dead(self, parse_js):
        code = "function f() {\n  return 1;\n  function helper() {}\n  tidy();\n}\n"
        assert [d.line for d in _dead(parse_js, code)] == [4]

    def test_one_report_per_block(self, parse_js):
        code = "function f() {\n  return 1;\n  a();\n  b();\n}\n"
        assert len(_dead(parse_js, code)) == 1

    def test_return_inside_branch_does_not_end_block(self, parse_js):
        code = "function f(x) {\n  if (x) {\n    return 1;\n  }\n  return 2;\n}\n"
        assert _dead(parse_js, code) == []

    def test_return_as_last_statement(self, parse_js):
        assert _dead(parse_js, "const f = () => {\n  work();\n  return 1;\n};\n") == []

    def test_long_line_is_cut(self, parse_js):
        call = "log(" + "'x', " * 40 + "'y');"
        code = f"function f() {{\n  return;\n  {call}\n}}\n"
        [found] = _dead(parse_js, code)
        assert found.code.endswith("...")
        assert len(found.code) == EXCERPT_LENGTH + 3

    def test_serialization(self, parse_js):
        [found] = _dead(parse_js, "function f() {\n  return;\n  x();\n}\n")
        assert found.to_dict() == {
            "file": "a.js",
            "location": {"line": 3},
            "name": "after-return",
            "kind": "DeadCodePath",
            "reason": "after-return",
            "code": "x();",
        }
