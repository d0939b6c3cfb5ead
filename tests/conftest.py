import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from graphsave import ExclusionPolicy, DEFAULT_POLICY  # noqa: E402

import scene_models  # noqa: E402


@pytest.fixture
def resolver():
    return scene_models.build_resolver()


@pytest.fixture
def policy() -> ExclusionPolicy:
    """Default exclusions plus the transient attributes of the sample scene."""
    return DEFAULT_POLICY.merged(
        ExclusionPolicy.build(
            types=[scene_models.Handle],
            attributes={scene_models.Actor: ["cache"]},
        )
    )
