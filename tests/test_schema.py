"""Tests for schema loading, validation and reference resolution."""

import json

import pytest

from xpaf.exceptions import (
    DuplicateNameError,
    InvalidNameError,
    InvalidPredicateError,
    InvalidQueryError,
    InvalidRegexpError,
    SchemaError,
    UnresolvedReferenceError,
)
from xpaf.models import Cardinality
from xpaf.schema import (
    GroupQueryRef,
    InlineQuery,
    LiteralRef,
    NamedQueryRef,
    compile_parser_defs,
    load_parser_defs,
    parse_parser_defs,
    validate_parser_defs,
)

from conftest import compile_parser, template


class TestLoader:
    """Tests for loading parser definitions from JSON."""

    def test_parse_dict(self, sample_schema):
        defs = parse_parser_defs(sample_schema)

        assert len(defs.parser_defs) == 2
        assert defs.parser_defs[0].parser_name == "shop"
        assert defs.parser_defs[0].query_group_defs[0].query_defs[1].name == "img"

    def test_parse_json_text(self, sample_schema):
        defs = parse_parser_defs(json.dumps(sample_schema))

        tmpl = defs.parser_defs[0].relation_tmpls[0]
        assert tmpl.object_cardinality == Cardinality.MANY
        assert tmpl.annotation_tmpls[0].name == "count"

    def test_single_parser_def(self):
        defs = parse_parser_defs({"parser_name": "solo"})

        assert [p.parser_name for p in defs.parser_defs] == ["solo"]

    def test_invalid_json(self):
        with pytest.raises(SchemaError):
            parse_parser_defs("{not json")

    def test_non_object_json(self):
        with pytest.raises(SchemaError):
            parse_parser_defs("[1, 2]")

    def test_missing_required_field(self):
        with pytest.raises(SchemaError):
            parse_parser_defs({"parser_defs": [{"parser_name": "p", "query_defs": [{"name": "x"}]}]})

    def test_bad_cardinality(self):
        with pytest.raises(SchemaError):
            parse_parser_defs({
                "parser_name": "p",
                "relation_tmpls": [template("a", "b", cs="SOME")],
            })

    def test_op_with_two_operations(self):
        with pytest.raises(SchemaError):
            parse_parser_defs({
                "parser_name": "p",
                "query_defs": [{
                    "name": "q",
                    "query": "//a",
                    "post_processing_ops": [{
                        "extract_op": {"regexp": "a"},
                        "replace_op": {"regexp": "b", "rewrite": "c"},
                    }],
                }],
            })

    def test_load_file(self, temp_dir, sample_schema):
        path = temp_dir / "parsers.json"
        path.write_text(json.dumps(sample_schema))

        defs = load_parser_defs(path)

        assert len(defs.parser_defs) == 2

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(SchemaError):
            load_parser_defs(temp_dir / "missing.json")


class TestValidator:
    """Tests for load-time validation."""

    def test_valid_schema(self, sample_schema):
        validate_parser_defs(parse_parser_defs(sample_schema))

    @pytest.mark.parametrize("name", ["bad-name", "with space", "digits1", ""])
    def test_invalid_query_name(self, name):
        with pytest.raises(InvalidNameError):
            compile_parser(query_defs=[{"name": name, "query": "//a"}])

    def test_invalid_group_name(self):
        with pytest.raises(InvalidNameError):
            compile_parser(query_group_defs=[{"name": "g.1", "root_query": "//div"}])

    def test_duplicate_query_names(self):
        with pytest.raises(DuplicateNameError):
            compile_parser(query_defs=[
                {"name": "a", "query": "//a"},
                {"name": "a", "query": "//b"},
            ])

    def test_duplicate_group_member_names(self):
        with pytest.raises(DuplicateNameError):
            compile_parser(query_group_defs=[{
                "name": "g",
                "root_query": "//div",
                "query_defs": [{"name": "x", "query": "/a"}, {"name": "x", "query": "/b"}],
            }])

    def test_same_name_in_different_scopes(self):
        parser = compile_parser(
            query_defs=[{"name": "x", "query": "//a"}],
            query_group_defs=[{
                "name": "g",
                "root_query": "//div",
                "query_defs": [{"name": "x", "query": "/a"}],
            }],
        )
        assert parser.queries[0].name == "x"
        assert parser.groups[0].queries[0].name == "x"

    def test_duplicate_parser_names(self):
        defs = parse_parser_defs({"parser_defs": [{"parser_name": "p"}, {"parser_name": "p"}]})
        with pytest.raises(DuplicateNameError):
            compile_parser_defs(defs)

    def test_invalid_parser_url_regexp(self):
        with pytest.raises(InvalidRegexpError):
            compile_parser(url_regexp="(unclosed")

    def test_invalid_template_url_regexp(self):
        with pytest.raises(InvalidRegexpError):
            compile_parser(relation_tmpls=[template("a", "b", url_regexp="[")])

    def test_invalid_op_regexp(self):
        with pytest.raises(InvalidRegexpError):
            compile_parser(query_defs=[{
                "name": "q",
                "query": "//a",
                "post_processing_ops": [{"extract_op": {"regexp": "*oops"}}],
            }])

    def test_invalid_xpath(self):
        with pytest.raises(InvalidQueryError):
            compile_parser(query_defs=[{"name": "q", "query": "//a["}])

    def test_invalid_root_query(self):
        with pytest.raises(InvalidQueryError):
            compile_parser(query_group_defs=[{"name": "g", "root_query": "//div[@"}])

    def test_reference_predicate_rejected(self):
        with pytest.raises(InvalidPredicateError):
            compile_parser(
                query_defs=[{"name": "q", "query": "//a"}],
                relation_tmpls=[template("a", "b", predicate="%q%")],
            )

    def test_path_like_predicate_is_literal(self):
        parser = compile_parser(
            relation_tmpls=[template("a", "b", predicate="/people/person/name")],
        )
        assert parser.templates[0].predicate == "/people/person/name"


class TestReferenceResolution:
    """Tests for resolving template values into typed references."""

    @pytest.fixture
    def parser(self):
        return compile_parser(
            query_defs=[
                {"name": "first", "query": "//a"},
                {"name": "second", "query": "//b"},
            ],
            query_group_defs=[{
                "name": "item",
                "root_query": "//div",
                "query_defs": [{"name": "name", "query": "/b"}, {"name": "img", "query": "/img"}],
            }],
            relation_tmpls=[
                template("%second%", "%item.img%", annotation_tmpls=[
                    {"name": "lit", "value": "hello", "value_cardinality": "ONE"},
                    {"name": "inline", "value": "//title", "value_cardinality": "ONE"},
                ]),
            ],
        )

    def test_named_query(self, parser):
        ref = parser.templates[0].subject
        assert ref == NamedQueryRef(index=1, name="second")

    def test_group_query(self, parser):
        ref = parser.templates[0].object
        assert ref == GroupQueryRef(group_index=0, query_index=1, name="item.img")

    def test_literal(self, parser):
        assert parser.templates[0].annotations[0].value == LiteralRef(value="hello")

    def test_inline_query(self, parser):
        assert parser.templates[0].annotations[1].value == InlineQuery(query="//title")

    def test_predicate_kept_literal(self, parser):
        assert parser.templates[0].predicate == "related_to"

    def test_undefined_query(self):
        with pytest.raises(UnresolvedReferenceError):
            compile_parser(relation_tmpls=[template("%missing%", "b")])

    def test_undefined_group(self):
        with pytest.raises(UnresolvedReferenceError):
            compile_parser(relation_tmpls=[template("a", "%nogroup.x%")])

    def test_undefined_group_member(self):
        with pytest.raises(UnresolvedReferenceError):
            compile_parser(
                query_group_defs=[{"name": "g", "root_query": "//div"}],
                relation_tmpls=[template("a", "%g.x%")],
            )

    def test_undefined_annotation_reference(self):
        with pytest.raises(UnresolvedReferenceError):
            compile_parser(relation_tmpls=[template("a", "b", annotation_tmpls=[
                {"name": "n", "value": "%nope%", "value_cardinality": "ONE"},
            ])])

    def test_malformed_reference(self):
        with pytest.raises(UnresolvedReferenceError):
            compile_parser(relation_tmpls=[template("%a b%", "b")])

    def test_invalid_inline_query(self):
        with pytest.raises(InvalidQueryError):
            compile_parser(relation_tmpls=[template("//a[", "b")])

    def test_template_url_pattern_compiled(self):
        parser = compile_parser(relation_tmpls=[template("a", "b", url_regexp="^https://")])
        assert parser.templates[0].url_pattern.pattern == "^https://"

    def test_compiled_parser_is_frozen(self, parser):
        with pytest.raises(AttributeError):
            parser.name = "other"
