"""Tests for usage detection (second indexing pass)."""
from scriptdoctor.analyzer.issues import UsageFact
from scriptdoctor.analyzer.reference_tracker import ReferenceTracker


def _used(parse_js, code, names):
    tree, source = parse_js(code)
    return {fact.name for fact in ReferenceTracker(names).extract_usages(tree, source, 'a.js')}


class TestReferenceTracker:
    """Only reads of known names count, never their declarations."""

    def test_call_is_usage(self, parse_js):
        code = "function used() {}\nfunction unused() {}\nused();\n"
        assert _used(parse_js, code, {'used', 'unused'}) == {'used'}

    def test_declaration_alone_is_not_usage(self, parse_js):
        assert _used(parse_js, "function lonely() {}\n", {'lonely'}) == set()

    def test_bare_reference_is_usage(self, parse_js):
        code = "const handler = () => 1;\nbutton.addEventListener('click', handler);\n"
        assert _used(parse_js, code, {'handler'}) == {'handler'}

    def test_member_call_is_usage(self, parse_js):
        code = "class A { save() {} }\nnew A().save();\n"
        assert _used(parse_js, code, {'save'}) == {'save'}

    def test_parameters_are_bindings(self, parse_js):
        code = "function f(helper) { return 1; }\nf(2);\n"
        assert _used(parse_js, code, {'helper'}) == set()

    def test_object_key_is_not_usage(self, parse_js):
        code = "const o = { helper: 1 };\nconsole.log(o);\n"
        assert _used(parse_js, code, {'helper'}) == set()

    def test_shorthand_property_is_usage(self, parse_js):
        code = "function helper() {}\nmodule.exports = { helper };\n"
        assert _used(parse_js, code, {'helper'}) == {'helper'}

    def test_export_clause_is_usage(self, parse_js):
        code = "function helper() {}\nexport { helper };\n"
        assert _used(parse_js, code, {'helper'}) == {'helper'}

    def test_import_binding_is_not_usage(self, parse_js):
        code = "import { helper } from './h';\n"
        assert _used(parse_js, code, {'helper'}) == set()

    def test_assignment_target_is_not_usage(self, parse_js):
        code = "let cache;\ncache = 1;\n"
        assert _used(parse_js, code, {'cache'}) == set()

    def test_one_fact_per_name_and_file(self, parse_js):
        tree, source = parse_js("go();\ngo();\ngo();\n")
        facts = ReferenceTracker({'go'}).extract_usages(tree, source, 'a.js')
        assert facts == {UsageFact(name='go', file='a.js')}

    def test_no_known_names(self, parse_js):
        assert _used(parse_js, "go();\n", set()) == set()
