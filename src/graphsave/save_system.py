from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

from .codec import Codec, PlainCodec, ZlibCodec
from .config import SaveGraphConfig
from .deserializer import Deserializer, LoadResult
from .errors import CodecError, SnapshotFormatError
from .hierarchy import Hierarchy, NodeHierarchy
from .introspection import FieldIntrospector
from .issues import FieldIssue
from .policy import DEFAULT_POLICY, ExclusionPolicy
from .resolver import TypeResolver, default_resolver
from .serializer import Serializer
from .snapshot import GraphSnapshot
from .storage import SaveStore
from .walker import GraphWalker

logger = logging.getLogger(__name__)


class SaveSystem:
    """Front door for saving and loading an entity graph.

    ``make_save`` turns a root entity into transport text, ``load_save`` turns
    that text back into a live graph. When a SaveStore is attached the same
    round trip is available through named slots.
    """

    def __init__(
        self,
        resolver: Optional[TypeResolver] = None,
        policy: Optional[ExclusionPolicy] = None,
        hierarchy: Optional[Hierarchy] = None,
        codec: Optional[Codec] = None,
        store: Optional[SaveStore] = None,
        indent: Optional[int] = None,
    ) -> None:
        self.resolver = resolver if resolver is not None else default_resolver
        self.policy = policy if policy is not None else DEFAULT_POLICY
        self.hierarchy = hierarchy if hierarchy is not None else NodeHierarchy()
        self.codec = codec if codec is not None else PlainCodec()
        self.store = store
        self.indent = indent
        self.last_issues: List[FieldIssue] = []

    @classmethod
    def from_config(
        cls,
        config: Optional[SaveGraphConfig] = None,
        resolver: Optional[TypeResolver] = None,
        hierarchy: Optional[Hierarchy] = None,
    ) -> "SaveSystem":
        cfg = config if config is not None else SaveGraphConfig.load()
        store = SaveStore(Path(cfg.save_dir)) if cfg.save_dir else SaveStore()
        return cls(
            resolver=resolver,
            policy=cfg.exclusions,
            hierarchy=hierarchy,
            codec=ZlibCodec() if cfg.compress else PlainCodec(),
            store=store,
            indent=cfg.indent,
        )

    # Snapshots

    def snapshot(self, root: Any) -> GraphSnapshot:
        serializer = Serializer(self.resolver, self.policy, self.hierarchy)
        snapshot = serializer.serialize(root)
        self.last_issues = list(serializer.issues)
        return snapshot

    def restore(self, snapshot: GraphSnapshot) -> LoadResult:
        result = Deserializer(self.resolver, self.policy, self.hierarchy).deserialize(snapshot)
        self.last_issues = list(result.issues)
        return result

    # Text

    def make_save(self, root: Any) -> str:
        snapshot = self.snapshot(root)
        text = snapshot.to_text(indent=self.indent)
        logger.info("Made save of %d entities (%d chars)", len(snapshot), len(text))
        return self.codec.encode(text)

    def load_save(self, data: str) -> LoadResult:
        text = self.codec.decode(data)
        return self.restore(GraphSnapshot.from_text(text))

    def obtain_all_objects(self, root: Any, include_root: bool = True) -> List[Any]:
        """Every entity a save of ``root`` would contain, in walk order.

        The root comes first; pass ``include_root=False`` for only the entities
        reachable from it.
        """
        walker = GraphWalker(FieldIntrospector(self.resolver, self.policy), hierarchy=self.hierarchy)
        entities = walker.collect(root)
        return entities if include_root else entities[1:]

    # Slots

    def save_to_slot(self, root: Any, slot: str) -> Path:
        return self._require_store().write(slot, self.make_save(root))

    def load_from_slot(self, slot: str) -> LoadResult:
        """Load a slot, falling back to its backup when the primary copy is corrupt."""
        store = self._require_store()
        data = store.read(slot)
        try:
            snapshot = GraphSnapshot.from_text(self.codec.decode(data))
        except (CodecError, SnapshotFormatError) as primary_exc:
            if not store.backup_path(slot).exists():
                raise
            logger.warning("Slot %s is corrupt (%s); trying backup", slot, primary_exc)
            backup = store.read_backup(slot)
            try:
                snapshot = GraphSnapshot.from_text(self.codec.decode(backup))
            except (CodecError, SnapshotFormatError):
                raise primary_exc from None
        return self.restore(snapshot)

    def _require_store(self) -> SaveStore:
        if self.store is None:
            raise RuntimeError("SaveSystem has no SaveStore attached")
        return self.store
