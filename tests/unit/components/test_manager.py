"""
Unit tests for the resource manager.

Tracking bookkeeping and the single teardown pass.
"""

import gc

import pytest
from doogie.config import Config
from doogie.engine import ArenaEngine
from doogie.errors import ResourceUnavailableError
from doogie.kinds import NodeKind
from doogie.manager import ResourceManager


@pytest.fixture
def engine():
    return ArenaEngine(Config())


@pytest.fixture
def manager(engine):
    return ResourceManager(engine)


class TestTracking:
    def test_starts_empty(self, manager):
        assert manager.roots == ()
        assert not manager.closed

    def test_track_is_idempotent(self, engine, manager):
        handle = engine.allocate(NodeKind.PARAGRAPH)
        manager.track_root(handle)
        manager.track_root(handle)
        assert manager.roots == (handle,)
        assert manager.is_tracking(handle)

    def test_roots_keep_insertion_order(self, engine, manager):
        a = engine.allocate(NodeKind.PARAGRAPH)
        b = engine.allocate(NodeKind.TEXT)
        manager.track_root(b)
        manager.track_root(a)
        assert manager.roots == (b, a)

    def test_untrack(self, engine, manager):
        handle = engine.allocate(NodeKind.PARAGRAPH)
        manager.track_root(handle)
        manager.untrack_root(handle)
        assert not manager.is_tracking(handle)

    def test_untrack_absent_is_noop(self, engine, manager):
        handle = engine.allocate(NodeKind.PARAGRAPH)
        manager.untrack_root(handle)
        assert manager.roots == ()


class TestTeardown:
    def test_close_frees_tracked_roots(self, engine, manager):
        doc = engine.allocate(NodeKind.DOCUMENT)
        para = engine.allocate(NodeKind.PARAGRAPH)
        engine.append_child(doc, para)
        manager.track_root(doc)

        manager.close()

        assert not engine.is_valid(doc)
        assert not engine.is_valid(para)
        assert manager.roots == ()
        assert manager.closed

    def test_untracked_handles_survive(self, engine, manager):
        handle = engine.allocate(NodeKind.PARAGRAPH)
        manager.close()
        assert engine.is_valid(handle)

    def test_close_twice(self, engine, manager):
        manager.track_root(engine.allocate(NodeKind.PARAGRAPH))
        manager.close()
        manager.close()
        assert len(engine) == 0

    def test_track_after_close_raises(self, engine, manager):
        manager.close()
        with pytest.raises(ResourceUnavailableError):
            manager.track_root(engine.allocate(NodeKind.PARAGRAPH))

    def test_garbage_collection_frees_roots(self, engine):
        manager = ResourceManager(engine)
        handle = engine.allocate(NodeKind.DOCUMENT)
        manager.track_root(handle)

        del manager
        gc.collect()

        assert not engine.is_valid(handle)

    def test_context_manager(self, engine):
        with ResourceManager(engine) as manager:
            handle = engine.allocate(NodeKind.DOCUMENT)
            manager.track_root(handle)
        assert not engine.is_valid(handle)

    def test_skips_root_that_was_attached_elsewhere(self, engine, manager):
        doc = engine.allocate(NodeKind.DOCUMENT)
        para = engine.allocate(NodeKind.PARAGRAPH)
        manager.track_root(para)
        engine.append_child(doc, para)

        manager.close()

        assert engine.is_valid(para)
        assert engine.parent(para) == doc

    def test_skips_root_already_freed(self, engine, manager):
        handle = engine.allocate(NodeKind.PARAGRAPH)
        manager.track_root(handle)
        engine.free(handle)
        manager.close()
        assert manager.roots == ()

    def test_descendant_root_freed_once(self, engine, manager):
        doc = engine.allocate(NodeKind.DOCUMENT)
        para = engine.allocate(NodeKind.PARAGRAPH)
        manager.track_root(doc)
        manager.track_root(para)
        engine.append_child(doc, para)

        manager.close()

        assert len(engine) == 0

    def test_repr(self, engine, manager):
        manager.track_root(engine.allocate(NodeKind.PARAGRAPH))
        assert "1 roots" in repr(manager)
        manager.close()
        assert "closed" in repr(manager)
