import pytest

from graphsave import Node, TypeResolutionError, TypeResolver, default_resolver, serializable

from scene_models import Actor, Door, Stats


def test_register_and_resolve_by_qualified_name():
    resolver = TypeResolver()
    resolver.register(Door)

    assert resolver.name_of(Door) == "scene_models.Door"
    assert resolver.name_of(Door("x")) == "scene_models.Door"
    assert resolver.resolve("scene_models.Door") is Door
    assert "scene_models.Door" in resolver
    assert list(resolver) == ["scene_models.Door"]
    assert len(resolver) == 1


def test_register_as_decorator_with_custom_name():
    resolver = TypeResolver()

    @resolver.register(name="game.Crate")
    class Crate:
        pass

    assert resolver.resolve("game.Crate") is Crate
    assert resolver.name_of(Crate) == "game.Crate"


def test_registration_is_idempotent_but_names_cannot_clash():
    resolver = TypeResolver()
    resolver.register(Door)
    resolver.register(Door)

    with pytest.raises(ValueError):
        resolver.register(Stats, name="scene_models.Door")
    with pytest.raises(ValueError):
        resolver.register(Door, name="other.Door")
    with pytest.raises(TypeError):
        resolver.register(Door("instance"))


def test_unknown_names_and_types_raise():
    resolver = TypeResolver()

    with pytest.raises(TypeResolutionError) as exc:
        resolver.resolve("nowhere.Ghost")
    assert exc.value.type_name == "nowhere.Ghost"
    with pytest.raises(TypeResolutionError):
        resolver.name_of(Door())


def test_entity_check_requires_exact_class(resolver):
    assert resolver.is_entity(Actor())
    assert resolver.is_entity(Door())
    assert not resolver.is_entity(Stats())
    assert not resolver.is_entity(None)
    assert not resolver.is_entity("Door")

    class Special(Door):
        pass

    assert not resolver.is_entity(Special())


def test_introspect_lists_attributes(resolver):
    assert [a.name for a in resolver.introspect(resolver.name_of(Door))] == ["name", "locked"]


def test_default_resolver_knows_node_and_decorator_registers():
    assert default_resolver.resolve("graphsave.node.Node") is Node

    @serializable(name="tests.Marker")
    class Marker:
        pass

    assert default_resolver.resolve("tests.Marker") is Marker
