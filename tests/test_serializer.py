import json
import logging
import math

import pytest

from graphsave import (
    DEFAULT_POLICY,
    EncodingError,
    FlatHierarchy,
    Serializer,
    TypeResolutionError,
)
from graphsave.issues import ACCESS

from scene_models import (
    Actor,
    Chest,
    Door,
    Fragile,
    Gauge,
    Handle,
    Node,
    Reading,
    Sensor,
    Unregistered,
    Widget,
    build_level,
)


def test_leaf_record_serializes_to_single_entity(resolver):
    snapshot = Serializer(resolver).serialize(Door("door", locked=True))

    assert len(snapshot) == 1
    entity = snapshot[1]
    assert entity.type_name == resolver.name_of(Door)
    assert entity.parent == 0
    assert {name: v.text for name, v in entity.attributes.items()} == {
        "name": '"door"',
        "locked": "true",
    }
    assert list(entity.references()) == []


def test_scene_layout(resolver, policy):
    root = build_level()
    hero, ally, chest = root.get_children()

    snapshot = Serializer(resolver, policy).serialize(root)

    assert list(snapshot.entities) == [1, 2, 3, 4]
    assert [snapshot[i].type_name for i in (1, 2, 3, 4)] == [
        resolver.name_of(Node),
        resolver.name_of(Actor),
        resolver.name_of(Actor),
        resolver.name_of(Chest),
    ]
    assert [(snapshot[i].parent, snapshot[i].index) for i in (1, 2, 3, 4)] == [(0, 0), (1, 0), (1, 1), (1, 2)]
    hero_vals = snapshot[2].attributes
    assert hero_vals["friend"].identity == 3
    assert hero_vals["target"].identity == 4
    assert hero_vals["owner"].identity == 1
    assert snapshot[3].attributes["friend"].identity == 2
    assert "cache" not in hero_vals


def test_scalar_encodings(resolver, policy):
    root = build_level()

    hero = Serializer(resolver, policy).serialize(root)[2].attributes

    assert hero["level"].text == "5"
    assert json.loads(hero["stats"].text) == {"hp": 42, "mp": 7}
    assert json.loads(hero["tags"].text) == ["brave", "tired"]
    assert hero["element"].text == '"ice"'
    assert hero["position"].text == "[3,4]"
    assert hero["spawned_at"].text == '"2024-05-06T07:08:09"'
    assert hero["title"].text == '"Knight"'


def test_none_is_null_even_for_scalar_attributes(resolver, policy):
    hero = Actor("hero")

    vals = Serializer(resolver, policy).serialize(hero)[1].attributes

    assert vals["spawned_at"].is_null
    assert vals["friend"].is_null
    assert vals["owner"].is_null


def test_root_parent_is_zero_when_saving_a_subtree(resolver, policy):
    root = build_level()
    hero = root.get_children()[0]

    snapshot = Serializer(resolver, policy).serialize(hero)

    assert snapshot[1].parent == 0
    # the tree root is still reachable through owner, so it is saved as an entity
    assert any(e.type_name == resolver.name_of(Node) for e in snapshot.entities.values())


def test_shared_reference_becomes_one_entity(resolver):
    root = Node("root")
    one, two = Actor("one"), Actor("two")
    chest = Chest("loot")
    one.target = two.target = chest
    root.add_child(one)
    root.add_child(two)

    snapshot = Serializer(resolver).serialize(root)

    assert len(snapshot) == 4
    assert snapshot[2].attributes["target"].identity == snapshot[3].attributes["target"].identity == 4
    assert snapshot[4].parent == 0


def test_unregistered_root_is_rejected(resolver):
    with pytest.raises(TypeResolutionError):
        Serializer(resolver).serialize(Unregistered("ghost"))


def test_value_without_json_shape_names_the_attribute(resolver):
    chest = Chest("chest")
    chest.lock = Widget()

    with pytest.raises(EncodingError) as exc:
        Serializer(resolver).serialize(chest)
    assert exc.value.attribute == "lock"
    assert exc.value.identity == 1
    assert exc.value.type_name == resolver.name_of(Chest)
    assert "lock" in str(exc.value)


def test_excluded_type_in_attribute_is_not_encoded(resolver, policy):
    chest = Chest("chest")
    chest.handle = Handle()

    with pytest.raises(EncodingError):
        Serializer(resolver, DEFAULT_POLICY).serialize(chest)
    vals = Serializer(resolver, policy).serialize(chest)[1].attributes
    assert "handle" not in vals


def test_entity_inside_container_is_rejected(resolver):
    chest = Chest("chest")
    chest.lock = [Door("inner")]

    with pytest.raises(EncodingError) as exc:
        Serializer(resolver).serialize(chest)
    assert exc.value.attribute == "lock"


def test_unreadable_attribute_is_skipped_and_reported(resolver, caplog):
    caplog.set_level(logging.WARNING, logger="graphsave.serializer")
    serializer = Serializer(resolver)

    snapshot = serializer.serialize(Fragile())

    assert list(snapshot[1].attributes) == ["label"]
    assert len(serializer.issues) == 1
    issue = serializer.issues[0]
    assert (issue.identity, issue.attribute, issue.kind) == (1, "broken", ACCESS)
    assert any("broken" in r.getMessage() for r in caplog.records)


def test_flat_hierarchy_drops_children_and_linkage(resolver, policy):
    root = build_level()

    snapshot = Serializer(resolver, policy, hierarchy=FlatHierarchy()).serialize(root)

    # the root itself has no attribute edges
    assert len(snapshot) == 1
    assert snapshot[1].parent == 0


def test_serialization_is_deterministic(resolver, policy):
    first = Serializer(resolver, policy).serialize(build_level()).to_text()
    second = Serializer(resolver, policy).serialize(build_level()).to_text()

    assert first == second


def test_failing_getter_of_any_kind_is_skipped_and_reported(resolver):
    serializer = Serializer(resolver)

    snapshot = serializer.serialize(Sensor())

    assert list(snapshot[1].attributes) == ["label"]
    assert [(i.attribute, i.kind) for i in serializer.issues] == [("temperature", ACCESS)]
    assert "engine object freed" in serializer.issues[0].message


def test_non_finite_float_in_value_object_names_the_attribute(resolver):
    gauge = Gauge(level=1.0, last=Reading(math.inf))

    with pytest.raises(EncodingError) as exc:
        Serializer(resolver).serialize(gauge)
    assert exc.value.attribute == "last"


def test_infinite_float_is_not_written_as_null(resolver):
    vals = Serializer(resolver).serialize(Gauge(level=-math.inf))[1].attributes

    assert vals["level"].is_scalar
    assert vals["level"].text == "-Infinity"
