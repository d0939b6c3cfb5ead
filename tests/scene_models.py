"""Sample entity types shared by the tests."""
from __future__ import annotations

import enum
from dataclasses import InitVar, dataclass, field
from datetime import datetime
from typing import Any, ClassVar, List, Optional, Tuple

from graphsave import Node, TypeResolver, obsolete


class Element(enum.Enum):
    FIRE = "fire"
    ICE = "ice"


@dataclass
class Stats:
    """Plain value object: stored as a scalar, never as an entity."""

    hp: int = 10
    mp: int = 0


class Handle:
    """Engine resource that must never reach a save."""


class Widget:
    """Arbitrary object with no JSON shape."""


@dataclass
class Door:
    name: str = ""
    locked: bool = False


@dataclass
class Link:
    label: str = ""
    next: Optional[Link] = None


@dataclass
class Legacy:
    current: int = 0
    old: int = field(default=0, metadata={"deprecated": "use current"})
    seed: InitVar[int] = 0

    def __post_init__(self, seed: int) -> None:
        self.current += seed


class Actor(Node):
    kind: ClassVar[str] = "actor"

    level: int
    stats: Stats
    tags: List[str]
    element: Element
    spawned_at: Optional[datetime]
    position: Tuple[int, int]
    friend: Optional[Actor]
    target: Optional[Node]
    cache: Any

    def __init__(self, name: str = "actor", level: int = 1) -> None:
        super().__init__(name)
        self.level = level
        self.stats = Stats()
        self.tags = []
        self.element = Element.FIRE
        self.spawned_at = None
        self.position = (0, 0)
        self.friend = None
        self.target = None
        self.cache = None
        self._title = ""

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = value

    @property
    @obsolete("use level")
    def old_level(self) -> int:
        return self.level

    @old_level.setter
    def old_level(self, value: int) -> None:
        self.level = value

    @property
    def power(self) -> int:
        return self.level * self.stats.hp


class Waypoint(Node):
    next: Optional[Waypoint]

    def __init__(self, name: str = "waypoint") -> None:
        super().__init__(name)
        self.next = None


class Chest(Node):
    gold: int
    lock: Any
    handle: Optional[Handle]

    def __init__(self, name: str = "chest", gold: int = 0) -> None:
        super().__init__(name)
        self.gold = gold
        self.lock = None
        self.handle = None


class Lamp(Node):
    holder: Optional[Actor]

    def __init__(self, name: str = "lamp") -> None:
        super().__init__(name)
        self.holder = None


class Fragile:
    """Entity with an attribute that blows up when read."""

    label: str

    def __init__(self) -> None:
        self.label = "fragile"

    @property
    def broken(self) -> int:
        raise AttributeError("sensor offline")

    @broken.setter
    def broken(self, value: int) -> None:
        pass


@dataclass
class Reading:
    """Plain value object carrying a float."""

    value: float = 0.0


@dataclass
class Gauge:
    level: float = 0.0
    history: List[float] = field(default_factory=list)
    last: Optional[Reading] = None


class Sensor:
    """Entity whose getter fails with something other than AttributeError."""

    label: str

    def __init__(self) -> None:
        self.label = "sensor"

    @property
    def temperature(self) -> float:
        raise RuntimeError("engine object freed")

    @temperature.setter
    def temperature(self, value: float) -> None:
        raise RuntimeError("engine object freed")


class Crumbling:
    """Entity whose argument-free constructor is itself broken."""

    label: str

    def __init__(self) -> None:
        self.label = len(None)  # type: ignore[arg-type]


class Rune:
    """Entity whose constructor requires arguments."""

    glyph: str
    power: int

    def __init__(self, glyph: str, power: int) -> None:
        self.glyph = glyph
        self.power = power


class Unregistered(Node):
    pass


ENTITY_TYPES = [Node, Door, Link, Legacy, Actor, Waypoint, Chest, Lamp, Fragile, Rune, Gauge, Sensor, Crumbling]


def build_resolver() -> TypeResolver:
    resolver = TypeResolver()
    for cls in ENTITY_TYPES:
        resolver.register(cls)
    return resolver


def build_level() -> Node:
    """A small scene: root -> [hero, ally, chest]; hero.friend = ally, ally.friend = hero."""
    root = Node("level")
    hero = Actor("hero", level=5)
    ally = Actor("ally", level=3)
    chest = Chest("chest", gold=120)
    for child in (hero, ally, chest):
        root.add_child(child)
        child.owner = root
    hero.friend = ally
    ally.friend = hero
    hero.target = chest
    hero.tags = ["brave", "tired"]
    hero.stats = Stats(hp=42, mp=7)
    hero.element = Element.ICE
    hero.position = (3, 4)
    hero.spawned_at = datetime(2024, 5, 6, 7, 8, 9)
    hero.title = "Knight"
    return root
