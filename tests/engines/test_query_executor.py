"""Tests for QueryExecutor against a real SQLite file (dog store)."""

from pathlib import Path
from typing import Annotated

import pytest

from dynsql import QueryExecutor, Render, SqlTemplate
from dynsql.core.errors import DatabaseError, RenderError
from dynsql.core.pool import find_placeholders
from dynsql.params import ParameterSchema
from tests.utils.dogs import Q_DOGS_SELECT, Q_DOGS_UPDATE, Dog, DogQuery, DogUpdate

DOGS = [
    Dog(name="Jeff", color="white", weight=20.5),
    Dog(name="Tom", color="black", weight=50.5),
    Dog(name="Leo", color="white", weight=60.0),
]


@pytest.fixture
def filled_store(dog_store):
    for dog in DOGS:
        assert dog_store.add(dog) == 1
    return dog_store


def _names(dogs: list[Dog]) -> list[str]:
    return sorted(d.name for d in dogs)


class TestDogStore:
    def test_list_all(self, filled_store):
        assert _names(filled_store.list(DogQuery())) == ["Jeff", "Leo", "Tom"]

    def test_list_by_color(self, filled_store):
        assert _names(filled_store.list(DogQuery(color="white"))) == ["Jeff", "Leo"]

    def test_list_by_name_fragment(self, filled_store):
        assert _names(filled_store.list(DogQuery(name="e"))) == ["Jeff", "Leo"]

    def test_list_by_weight_range(self, filled_store):
        dogs = filled_store.list(DogQuery(weight_lower=20.0, weight_upper=55.0))
        assert _names(dogs) == ["Jeff", "Tom"]

    def test_round_trip(self, filled_store):
        n = filled_store.update(
            DogUpdate(color="yellow", weight=25.0, query=DogQuery(color="white"))
        )
        assert n == 2
        assert filled_store.list(DogQuery(color="white")) == []

        yellow = filled_store.list(DogQuery(color="yellow"))
        assert _names(yellow) == ["Jeff", "Leo"]
        assert all(d.weight == 25.0 for d in yellow)

        for dog in DOGS:
            assert filled_store.delete(dog.name) == 1
        assert filled_store.list(DogQuery()) == []

    def test_update_without_filter_touches_every_row(self, filled_store):
        assert filled_store.update(DogUpdate(weight=1.0)) == 3

    def test_update_with_nothing_to_set(self, filled_store):
        with pytest.raises(DatabaseError):
            filled_store.update(DogUpdate(query=DogQuery(color="white")))

    def test_duplicate_insert(self, filled_store):
        with pytest.raises(DatabaseError):
            filled_store.add(DOGS[0])

    def test_unmappable_rows_skipped(self, filled_store):
        filled_store.executor.conn.prepare(
            "INSERT INTO dogs(name, color, weight) VALUES ('Ghost', NULL, 1.0)"
        ).execute({})
        assert _names(filled_store.list(DogQuery())) == ["Jeff", "Leo", "Tom"]


class TestRenderBindConsistency:
    @pytest.mark.parametrize(
        "params",
        [
            DogQuery(),
            DogQuery(color="white"),
            DogQuery(name="a", color="white", weight_upper=1.0, weight_lower=0.0),
        ],
    )
    def test_select(self, dog_store, params):
        sql = dog_store.executor.render(Q_DOGS_SELECT, params)
        bound = [name[1:] for name, _ in params.bind_list()]
        assert find_placeholders(sql) == bound

    @pytest.mark.parametrize(
        "params",
        [
            DogUpdate(color="white"),
            DogUpdate(color="white", weight=2.0, query=DogQuery(name="x")),
        ],
    )
    def test_update(self, dog_store, params):
        sql = dog_store.executor.render(Q_DOGS_UPDATE, params)
        bound = [name[1:] for name, _ in params.bind_list()]
        assert sorted(find_placeholders(sql)) == sorted(bound)


class Paged(ParameterSchema):
    limit: Annotated[int, Render()]


class TestQueryExecutor:
    def test_open_and_render_literal(self):
        tpl = SqlTemplate("Q_ONE", "SELECT 1 AS n LIMIT {{[:limit]}}")
        with QueryExecutor.open("sqlite://", templates=[tpl]) as ex:
            assert ex.render("Q_ONE", Paged(limit=5)) == "SELECT 1 AS n LIMIT 5"
            assert ex.query(tpl, Paged(limit=5), lambda r: r["n"]) == [1]

    def test_template_by_tuple(self):
        with QueryExecutor.open("sqlite://", templates=[("Q_ONE", "SELECT 2 AS n")]) as ex:
            assert ex.query(("Q_ONE", "ignored"), Paged(limit=1), lambda r: r["n"]) == [2]

    def test_unknown_template(self, tmp_path: Path):
        with QueryExecutor.open(tmp_path / "x.db") as ex:
            with pytest.raises(RenderError, match="Unknown template"):
                ex.execute("Q_NOPE", Paged(limit=1))
