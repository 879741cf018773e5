"""Tests for the query builder."""

import logging

import pytest
from sqlalchemy import inspect

from blog import Article, Category, Comment
from restforge.errors import InvalidQueryError
from restforge.query import (
    Condition,
    PaginationParams,
    QueryBuilder,
    QueryConstraints,
    RelationCount,
    prepare_query,
    prepare_query_with_count,
)


@pytest.fixture
def builder():
    return QueryBuilder(Article)


def titles(session, stmt):
    return [a.title for a in session.scalars(stmt)]


@pytest.fixture
def categories(session):
    """A small tree: root -> (x -> leaf, y), plus see-also links."""
    root = Category(id=1, name="root")
    x = Category(id=2, name="x", parent=root)
    y = Category(id=3, name="y", parent=root)
    leaf = Category(id=4, name="leaf", parent=x)
    root.see_also = [x, leaf]
    x.see_also = [y]
    session.add_all([root, x, y, leaf])
    session.commit()
    session.expunge_all()
    return session


def names(session, stmt):
    return sorted(c.name for c in session.scalars(stmt))


class TestConstruction:
    def test_unmapped_class_raises(self):
        with pytest.raises(InvalidQueryError, match="not a mapped class"):
            QueryBuilder(object)

    def test_no_constraints_selects_everything(self, seeded, builder):
        assert sorted(titles(seeded, builder.build())) == ["a", "b", "c"]


class TestFilters:
    def test_static_filters_are_anded(self, seeded, builder):
        constraints = QueryConstraints(filters={"status": "published", "views": 30})
        assert titles(seeded, builder.build(constraints)) == ["c"]

    def test_unknown_filter_field_raises(self, builder):
        with pytest.raises(InvalidQueryError, match="Unknown field"):
            builder.build(QueryConstraints(filters={"nope": 1}))

    def test_predicate_is_anded_with_filters(self, seeded, builder):
        constraints = QueryConstraints(
            filters={"status": "published"},
            predicate=Condition("title", "eq", "a") | Condition("title", "eq", "b"),
        )
        # The Or stays grouped: the draft "b" is still excluded by the filter
        assert titles(seeded, builder.build(constraints)) == ["a"]

    def test_mapping_predicate(self, seeded, builder):
        constraints = QueryConstraints(predicate={"field": "views", "operator": "<", "value": 20})
        assert titles(seeded, builder.build(constraints)) == ["a"]

    def test_callable_predicate(self, seeded, builder):
        constraints = QueryConstraints(predicate=lambda model: model.title != "a")
        assert sorted(titles(seeded, builder.build(constraints))) == ["b", "c"]


class TestRelations:
    def test_relations_are_eager_loaded(self, seeded, builder):
        stmt = builder.build(QueryConstraints(relations=["comments", "author"]))
        articles = seeded.scalars(stmt).all()
        for article in articles:
            state = inspect(article)
            assert "comments" not in state.unloaded
            assert "author" not in state.unloaded
            assert "tags" in state.unloaded

    def test_nested_relation_path(self, seeded):
        stmt = QueryBuilder(Comment).build(QueryConstraints(relations=["article.author"]))
        comment = seeded.scalars(stmt).first()
        assert "author" not in inspect(comment.article).unloaded

    def test_unknown_relation_raises(self, builder):
        with pytest.raises(InvalidQueryError, match="Unknown relation 'missing'"):
            builder.build(QueryConstraints(relations=["missing"]))


class TestRelationCounts:
    def test_at_least_two_related_rows(self, seeded, builder):
        constraints = QueryConstraints(relation_counts={"comments": [None, ">=", 2]})
        assert titles(seeded, builder.build(constraints)) == ["c"]

    def test_predicate_only_defaults_to_at_least_one(self, seeded, builder):
        constraints = QueryConstraints(
            relation_counts={"comments": [Condition("approved", "eq", True)]}
        )
        assert sorted(titles(seeded, builder.build(constraints))) == ["b", "c"]

    def test_predicate_and_operator_default_count_to_one(self, seeded, builder):
        constraints = QueryConstraints(relation_counts={"comments": [None, "<"]})
        assert titles(seeded, builder.build(constraints)) == ["a"]

    def test_sub_predicate_filters_counted_rows(self, seeded, builder):
        constraints = QueryConstraints(
            relation_counts={"comments": [Condition("approved", "eq", True), "eq", 2]}
        )
        assert titles(seeded, builder.build(constraints)) == ["c"]

    def test_relation_count_object(self, seeded, builder):
        constraints = QueryConstraints(
            relation_counts={"comments": RelationCount(operator="eq", count=0)}
        )
        assert titles(seeded, builder.build(constraints)) == ["a"]

    def test_many_to_many(self, seeded, builder):
        constraints = QueryConstraints(relation_counts={"tags": (None, ">=", 2)})
        assert titles(seeded, builder.build(constraints)) == ["b"]

    def test_multiple_entries_are_anded(self, seeded, builder):
        constraints = QueryConstraints(
            relation_counts={"comments": [None, ">=", 1], "tags": [None, ">=", 1]}
        )
        assert titles(seeded, builder.build(constraints)) == ["b"]

    def test_empty_entry_is_skipped(self, seeded, builder, caplog):
        constraints = QueryConstraints(relation_counts={"comments": []})
        with caplog.at_level(logging.DEBUG, logger="restforge.query.constraints"):
            assert sorted(titles(seeded, builder.build(constraints))) == ["a", "b", "c"]
        assert "Skipping empty relation count" in caplog.text

    def test_unsupported_operator_raises(self):
        with pytest.raises(InvalidQueryError, match="relation count operator"):
            RelationCount(operator="in")

    @pytest.mark.parametrize("threshold", ["several", None, "2.5"])
    def test_non_integer_threshold_raises(self, threshold):
        with pytest.raises(InvalidQueryError, match="must be an integer"):
            RelationCount.from_value([None, ">=", threshold])

    def test_numeric_string_threshold_is_accepted(self):
        assert RelationCount.from_value([None, ">=", "2"]).count == 2


class TestSelfReferentialRelationCounts:
    @pytest.fixture
    def tree(self):
        return QueryBuilder(Category)

    def test_counts_children_of_same_table(self, categories, tree):
        constraints = QueryConstraints(relation_counts={"children": [None, ">=", 2]})
        assert names(categories, tree.build(constraints)) == ["root"]

    def test_childless_rows(self, categories, tree):
        constraints = QueryConstraints(relation_counts={"children": [None, "eq", 0]})
        assert names(categories, tree.build(constraints)) == ["leaf", "y"]

    def test_sub_predicate_applies_to_children(self, categories, tree):
        constraints = QueryConstraints(
            relation_counts={"children": [Condition("name", "eq", "leaf")]}
        )
        assert names(categories, tree.build(constraints)) == ["x"]

    def test_many_to_one_parent(self, categories, tree):
        constraints = QueryConstraints(relation_counts={"parent": [None, ">=", 1]})
        assert names(categories, tree.build(constraints)) == ["leaf", "x", "y"]

    def test_sub_predicate_applies_to_parent(self, categories, tree):
        constraints = QueryConstraints(
            relation_counts={"parent": [Condition("name", "eq", "root")]}
        )
        assert names(categories, tree.build(constraints)) == ["x", "y"]

    def test_many_to_many_links(self, categories, tree):
        constraints = QueryConstraints(relation_counts={"see_also": [None, ">=", 2]})
        assert names(categories, tree.build(constraints)) == ["root"]

    def test_many_to_many_sub_predicate(self, categories, tree):
        constraints = QueryConstraints(
            relation_counts={"see_also": [Condition("name", "eq", "y")]}
        )
        assert names(categories, tree.build(constraints)) == ["x"]

    def test_combined_with_outer_filter(self, categories, tree):
        constraints = QueryConstraints(
            filters={"parent_id": 1},
            relation_counts={"children": [None, ">=", 1]},
        )
        assert names(categories, tree.build(constraints)) == ["x"]


class TestPagination:
    def test_sort_descending(self, seeded, builder):
        params = PaginationParams(sort="title", order="desc")
        assert titles(seeded, builder.build(params=params)) == ["c", "b", "a"]

    def test_skip_and_limit_with_total(self, seeded, builder):
        params = PaginationParams(skip=1, limit=1, sort="title", order="desc")
        stmt, total = builder.build_with_count(seeded, params=params)
        assert titles(seeded, stmt) == ["b"]
        assert total == 3

    def test_total_respects_constraints(self, seeded, builder):
        constraints = QueryConstraints(filters={"status": "published"})
        stmt, total = builder.build_with_count(seeded, constraints, PaginationParams(limit=1))
        assert len(titles(seeded, stmt)) == 1
        assert total == 2

    def test_zero_skip_and_limit_are_ignored(self, seeded, builder):
        params = PaginationParams(skip=0, limit=0, sort="title")
        assert titles(seeded, builder.build(params=params)) == ["a", "b", "c"]

    def test_unknown_sort_field_raises(self, builder):
        with pytest.raises(InvalidQueryError, match="Unknown field"):
            builder.build(params=PaginationParams(sort="nope"))


class TestModuleHelpers:
    def test_prepare_query(self, seeded):
        stmt = prepare_query(
            Article,
            filters={"status": "published"},
            params=PaginationParams(sort="views", order="desc"),
        )
        assert titles(seeded, stmt) == ["c", "a"]

    def test_prepare_query_with_count(self, seeded):
        stmt, total = prepare_query_with_count(
            seeded,
            Article,
            relation_counts={"comments": [None]},
            params=PaginationParams(limit=1, sort="title"),
        )
        assert titles(seeded, stmt) == ["b"]
        assert total == 2
