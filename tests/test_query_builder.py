"""Tests for the relevance query builder."""
import pytest

from services.document_index.QueryBuilder import QueryBuilder, tokenize


@pytest.fixture
def builder():
    return QueryBuilder(result_cap=1000)


class TestQueryBuilder:
    def test_single_term_has_one_clause(self, builder):
        query = builder.build("invoice")
        assert query.must == [
            {"match": {"content": {"query": "invoice", "fuzziness": "AUTO", "operator": "and"}}}
        ]

    def test_multi_term_adds_per_term_or_clauses(self, builder):
        query = builder.build("invoice  total")
        assert len(query.must) == 3
        assert query.must[0]["match"]["content"]["query"] == "invoice total"
        assert query.must[0]["match"]["content"]["operator"] == "and"
        for clause, term in zip(query.must[1:], ["invoice", "total"]):
            should = clause["bool"]["should"]
            assert clause["bool"]["minimum_should_match"] == 1
            assert should[0] == {"match": {"content": {"query": term, "fuzziness": "AUTO"}}}
            assert should[1] == {"match": {"file_name": {"query": term, "fuzziness": "AUTO"}}}

    def test_highlight_configuration(self, builder):
        highlight = builder.build("invoice").highlight
        assert highlight.pre_tag == "<mark>"
        assert highlight.post_tag == "</mark>"
        assert highlight.fields["content"].fragment_size == 300
        assert highlight.fields["content"].number_of_fragments == 5
        assert highlight.fields["file_name"].fragment_size == 150
        assert highlight.fields["file_name"].number_of_fragments == 1

    def test_result_cap(self, builder):
        assert builder.build("a").size == 1000
        assert builder.build("a", result_cap=10).size == 10

    def test_role_filter_only_when_roles_given(self, builder):
        assert builder.build("invoice").filter == []
        query = builder.build("invoice", visible_roles=["Internal", "User"])
        assert query.filter == [{"terms": {"role": ["Internal", "User"]}}]

    def test_proximity_adds_scoring_phrase_clause(self, builder):
        query = builder.build("invoice total", proximity=10)
        assert query.should == [{"match_phrase": {"content": {"query": "invoice total", "slop": 10}}}]
        assert builder.build("invoice", proximity=10).should == []

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
    def test_empty_query_rejected(self, builder, raw):
        assert tokenize(raw) == []
        with pytest.raises(ValueError):
            builder.build(raw)
