"""Tests for the graph compiler and the schema registry."""

from __future__ import annotations

import pytest
from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from relpath.core.compiler import GraphCompiler, compile_graph
from relpath.core.defs import RelationKind
from relpath.core.errors import GraphConfigError, UnknownRelation
from relpath.core.registry import SchemaRegistry


class ModelBase(DeclarativeBase):
    pass


tag_links = Table(
    "tag_links",
    ModelBase.metadata,
    Column("article_id", ForeignKey("articles.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class Author(ModelBase):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))

    articles: Mapped[list["Article"]] = relationship(back_populates="author")
    profile: Mapped["Profile"] = relationship(back_populates="author", uselist=False)


class Profile(ModelBase):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("authors.id"))

    author: Mapped[Author] = relationship(back_populates="profile")


class Article(ModelBase):
    __tablename__ = "articles"

    key: Mapped[int] = mapped_column(Integer, primary_key=True)
    id: Mapped[int] = mapped_column(Integer, unique=True)
    writer_id: Mapped[int] = mapped_column(ForeignKey("authors.id"))

    author: Mapped[Author] = relationship(back_populates="articles")
    tags: Mapped[list["Tag"]] = relationship(secondary=tag_links)


class Tag(ModelBase):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    label: Mapped[str] = mapped_column(String(20))


class TestGraphCompiler:
    def test_valid_graph(self, graph) -> None:
        result = GraphCompiler().compile(graph)

        assert result.success
        assert result.errors == []
        assert set(result.graph.entities) == {"Country", "City", "Person", "Product"}

    def test_defaults(self) -> None:
        graph_def = compile_graph({"entities": {"Thing": {}}})
        thing = graph_def.entities["Thing"]

        assert graph_def.version == 1
        assert thing.primary_key == "id"
        assert thing.relations == {}

    def test_collects_every_error(self, graph) -> None:
        graph["entities"]["Person"]["relations"]["city"]["kind"] = "manyToMany"
        graph["entities"]["Person"]["relations"]["products"]["target"] = "Widget"
        del graph["entities"]["Product"]["relations"]["person"]["foreign_key"]

        result = GraphCompiler().compile(graph)

        assert not result.success
        assert result.graph is None
        messages = result.error_messages()
        assert len(messages) == 3
        assert messages[0].startswith("[Person.city] Invalid kind 'manyToMany'")
        assert messages[1] == "[Person.products] Unknown target entity 'Widget'"
        assert messages[2] == "[Product.person] Missing foreign_key"

    def test_entities_must_be_a_mapping(self) -> None:
        result = GraphCompiler().compile({"entities": ["Person"]})

        assert result.error_messages() == ["[global] 'entities' must be a mapping"]

    def test_compile_graph_raises(self) -> None:
        with pytest.raises(GraphConfigError) as exc_info:
            compile_graph({"entities": {"Person": {"relations": []}}})

        assert exc_info.value.errors == ["[Person] 'relations' must be a mapping"]


class TestSchemaRegistry:
    def test_relation_lookup(self, registry) -> None:
        relation = registry.relation("Person", "city")

        assert relation.kind is RelationKind.BELONGS_TO
        assert relation.target == "City"
        assert relation.foreign_key == "city_id"

    def test_unknown_relation(self, registry) -> None:
        with pytest.raises(UnknownRelation, match="Entity 'Person' has no relation 'planet'"):
            registry.relation("Person", "planet")

    def test_unknown_entity(self, registry) -> None:
        with pytest.raises(GraphConfigError):
            registry.entity("Planet")

    def test_contains(self, registry) -> None:
        assert "Person" in registry
        assert "Planet" not in registry
        assert registry.entity_names() == ["Country", "City", "Person", "Product"]

    def test_find_relation_to_uses_declaration_order(self) -> None:
        registry = SchemaRegistry.from_dict({
            "entities": {
                "Order": {
                    "relations": {
                        "buyer": {"kind": "belongsTo", "target": "User", "foreign_key": "buyer_id"},
                        "seller": {"kind": "belongsTo", "target": "User", "foreign_key": "seller_id"},
                    },
                },
                "User": {},
            },
        })

        assert [rel.name for rel in registry.relations_to("Order", "User")] == ["buyer", "seller"]
        assert registry.find_relation_to("Order", "User").name == "buyer"
        assert registry.find_relation_to("User", "Order") is None

    def test_relations_are_read_only(self, registry) -> None:
        with pytest.raises(TypeError):
            registry.relations("Person")["planet"] = None

    def test_to_dict(self, registry) -> None:
        graph = registry.to_dict()

        assert graph["version"] == 1
        assert graph["entities"]["City"]["relations"]["people"] == {
            "kind": "hasMany",
            "target": "Person",
            "foreign_key": "city_id",
        }
        assert SchemaRegistry.from_dict(graph).relation("City", "people").foreign_key == "city_id"


class TestFromModels:
    @pytest.fixture
    def model_registry(self) -> SchemaRegistry:
        return SchemaRegistry.from_models([Author, Profile, Article, Tag])

    def test_belongs_to(self, model_registry) -> None:
        relation = model_registry.relation("Article", "author")

        assert relation.kind is RelationKind.BELONGS_TO
        assert relation.target == "Author"
        assert relation.foreign_key == "writer_id"

    def test_has_many(self, model_registry) -> None:
        relation = model_registry.relation("Author", "articles")

        assert relation.kind is RelationKind.HAS_MANY
        assert relation.foreign_key == "writer_id"

    def test_has_one(self, model_registry) -> None:
        relation = model_registry.relation("Author", "profile")

        assert relation.kind is RelationKind.HAS_ONE
        assert relation.foreign_key == "author_id"

    def test_many_to_many(self, model_registry) -> None:
        relation = model_registry.relation("Article", "tags")

        assert relation.kind is RelationKind.HAS_AND_BELONGS_TO_MANY
        assert relation.target == "Tag"
        assert relation.foreign_key == "article_id"

    def test_primary_key_and_fields(self, model_registry) -> None:
        article = model_registry.entity("Article")

        assert article.primary_key == "key"
        assert article.fields == ("key", "id", "writer_id")

    def test_unregistered_targets_are_skipped(self) -> None:
        registry = SchemaRegistry.from_models([Author, Article])

        assert "tags" not in registry.relations("Article")
        assert "profile" not in registry.relations("Author")
        assert registry.relation("Author", "articles").target == "Article"
