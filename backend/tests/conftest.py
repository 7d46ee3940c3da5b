from __future__ import annotations

import pytest

from amethyst.composer import ResponseComposer
from amethyst.knowledge import build_knowledge_base


@pytest.fixture(scope="session")
def knowledge():
    return build_knowledge_base()


@pytest.fixture
def composer(knowledge):
    return ResponseComposer(knowledge)
