import json
from pathlib import Path

import pytest

from graphsave import (
    CodecError,
    SaveGraphConfig,
    SaveStore,
    SaveSystem,
    SnapshotFormatError,
    TypeResolver,
    ZlibCodec,
)

from scene_models import Actor, Fragile, Link, build_level


def make_system(resolver, policy, tmp_path: Path, **kwargs) -> SaveSystem:
    return SaveSystem(resolver=resolver, policy=policy, store=SaveStore(root_dir=tmp_path), **kwargs)


def test_make_save_and_load_save(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path)

    text = system.make_save(build_level())
    result = system.load_save(text)

    assert json.loads(text)["1"]["vals"]["name"] == '"level"'
    hero, ally, _ = result.root.get_children()
    assert hero.friend is ally
    assert result.ok


def test_compressed_saves(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path, codec=ZlibCodec())

    data = system.make_save(build_level())

    assert not data.startswith("{")
    assert system.load_save(data).root.get_child_count() == 3


def test_indent_is_applied(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path, indent=2)

    assert "\n" in system.make_save(Actor("solo"))


def test_obtain_all_objects(resolver, policy, tmp_path: Path):
    root = build_level()

    objects = make_system(resolver, policy, tmp_path).obtain_all_objects(root)

    assert objects[0] is root
    assert [o.name for o in objects] == ["level", "hero", "ally", "chest"]


def test_issues_are_exposed(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path)

    system.make_save(Fragile())

    assert [i.attribute for i in system.last_issues] == ["broken"]


def test_slot_round_trip(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path)
    a, b = Link("a"), Link("b")
    a.next, b.next = b, a

    path = system.save_to_slot(a, "cycle")
    root = system.load_from_slot("cycle").root

    assert path.exists()
    assert root.next.next is root


def test_corrupt_slot_falls_back_to_backup(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path)
    system.save_to_slot(Link("old"), "slot1")
    system.save_to_slot(Link("new"), "slot1")
    system.store.slot_path("slot1").write_text("{ corrupted", encoding="utf-8")

    assert system.load_from_slot("slot1").root.label == "old"


def test_corrupt_slot_without_backup_raises(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path, codec=ZlibCodec())
    system.save_to_slot(Link("only"), "slot1")
    system.store.slot_path("slot1").write_text("garbage!", encoding="utf-8")

    with pytest.raises(CodecError):
        system.load_from_slot("slot1")


def test_corrupt_slot_and_backup_raises_primary_error(resolver, policy, tmp_path: Path):
    system = make_system(resolver, policy, tmp_path)
    system.save_to_slot(Link("a"), "slot1")
    system.save_to_slot(Link("b"), "slot1")
    system.store.slot_path("slot1").write_text("{ corrupted", encoding="utf-8")
    system.store.backup_path("slot1").write_text("[]", encoding="utf-8")

    with pytest.raises(SnapshotFormatError) as exc:
        system.load_from_slot("slot1")
    assert "Invalid JSON" in str(exc.value)


def test_slots_need_a_store(resolver, policy):
    system = SaveSystem(resolver=resolver, policy=policy)

    with pytest.raises(RuntimeError):
        system.save_to_slot(Link("x"), "slot1")


def test_from_config(resolver, tmp_path: Path):
    cfg = SaveGraphConfig.from_dict(
        {
            "compress": True,
            "save_dir": str(tmp_path / "saves"),
            "exclude_attributes": {"scene_models.Actor": ["cache"]},
        }
    )

    system = SaveSystem.from_config(cfg, resolver=resolver)

    assert isinstance(system.codec, ZlibCodec)
    assert system.store.root_dir == tmp_path / "saves"
    assert system.policy.excludes_attribute(Actor, "cache")
    root = build_level()
    system.save_to_slot(root, "auto")
    assert system.load_from_slot("auto").root.name == "level"


def test_empty_resolver_is_kept_and_filled_later(tmp_path: Path):
    resolver = TypeResolver()
    system = SaveSystem(resolver=resolver, store=SaveStore(root_dir=tmp_path))
    resolver.register(Link)

    assert system.resolver is resolver
    assert system.load_save(system.make_save(Link("late"))).root.label == "late"


def test_obtain_all_objects_without_root(resolver, policy, tmp_path: Path):
    root = build_level()

    objects = make_system(resolver, policy, tmp_path).obtain_all_objects(root, include_root=False)

    assert [o.name for o in objects] == ["hero", "ally", "chest"]
