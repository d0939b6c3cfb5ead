"""graphsave: flatten live object graphs into portable snapshots and back.

This package provides:
- IdentityRegistry, GraphWalker and Serializer to flatten an entity graph
  (shared references and cycles included) into a GraphSnapshot
- a two-phase Deserializer that rebuilds the live graph from a snapshot
- ExclusionPolicy and FieldIntrospector deciding which attributes persist
- a JSON text schema, an optional zlib codec and atomic on-disk save slots
- SaveGraphConfig and configure_logging for applications that want the
  JSON/env configuration and the standard log format
"""

__version__ = "0.1.0"

from .codec import Codec, PlainCodec, ZlibCodec
from .config import SaveGraphConfig
from .deserializer import Deserializer, LoadPass, LoadResult, PassState
from .errors import (
    CodecError,
    DecodingError,
    EncodingError,
    FieldAccessError,
    PassStateError,
    ReferenceResolutionError,
    SaveGraphError,
    SaveNotFoundError,
    SaveStoreError,
    SnapshotFormatError,
    TypeResolutionError,
)
from .hierarchy import FlatHierarchy, Hierarchy, NodeHierarchy
from .identity import NO_IDENTITY, IdentityRegistry
from .introspection import Attribute, FieldIntrospector, discover_attributes, obsolete
from .issues import FieldIssue
from .logging_config import configure_logging
from .node import Node
from .policy import DEFAULT_POLICY, ExclusionPolicy
from .resolver import TypeResolver, default_resolver, serializable
from .save_system import SaveSystem
from .serializer import Serializer
from .snapshot import AttributeValue, EntitySnapshot, GraphSnapshot, ValueKind
from .storage import SaveStore
from .walker import GraphWalker, Visit

__all__ = [
    "Attribute",
    "AttributeValue",
    "Codec",
    "CodecError",
    "DEFAULT_POLICY",
    "DecodingError",
    "Deserializer",
    "EncodingError",
    "EntitySnapshot",
    "ExclusionPolicy",
    "FieldAccessError",
    "FieldIntrospector",
    "FieldIssue",
    "FlatHierarchy",
    "GraphSnapshot",
    "GraphWalker",
    "Hierarchy",
    "IdentityRegistry",
    "LoadPass",
    "LoadResult",
    "NO_IDENTITY",
    "Node",
    "NodeHierarchy",
    "PassState",
    "PassStateError",
    "PlainCodec",
    "ReferenceResolutionError",
    "SaveGraphConfig",
    "SaveGraphError",
    "SaveNotFoundError",
    "SaveStore",
    "SaveStoreError",
    "SaveSystem",
    "Serializer",
    "SnapshotFormatError",
    "TypeResolutionError",
    "TypeResolver",
    "ValueKind",
    "Visit",
    "ZlibCodec",
    "configure_logging",
    "default_resolver",
    "discover_attributes",
    "obsolete",
    "serializable",
]
