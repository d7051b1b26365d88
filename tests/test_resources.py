"""Tests for ScopedResource and HeaderList ownership rules."""

import copy
import pickle

import pytest

from HttpTransfer.errors import HttpError
from HttpTransfer.resources import HeaderList, ScopedResource


class Tracker:
    def __init__(self):
        self.released = []

    def __call__(self, value):
        self.released.append(value)


class TestScopedResource:
    def test_release_runs_deleter_once(self):
        tracker = Tracker()
        resource = ScopedResource("handle", tracker)

        resource.release()
        resource.release()
        resource.close()

        assert tracker.released == ["handle"]
        assert resource.empty

    def test_value_after_release_raises(self):
        resource = ScopedResource("handle", Tracker())
        resource.release()

        with pytest.raises(ValueError):
            resource.value

    def test_context_manager_releases_on_exit(self):
        tracker = Tracker()

        with ScopedResource("handle", tracker) as value:
            assert value == "handle"
            assert tracker.released == []

        assert tracker.released == ["handle"]

    def test_context_manager_releases_on_error(self):
        tracker = Tracker()

        with pytest.raises(RuntimeError):
            with ScopedResource("handle", tracker):
                raise RuntimeError("boom")

        assert tracker.released == ["handle"]

    def test_no_deleter(self):
        resource = ScopedResource([1, 2])
        resource.release()
        assert resource.empty

    def test_reset_releases_previous_value(self):
        tracker = Tracker()
        resource = ScopedResource("first", tracker)

        resource.reset("second")
        assert tracker.released == ["first"]
        assert resource.value == "second"

        resource.reset()
        assert tracker.released == ["first", "second"]
        assert resource.empty

    def test_detach_moves_ownership(self):
        tracker = Tracker()
        original = ScopedResource("handle", tracker)

        moved = original.detach()
        original.release()
        assert tracker.released == []

        moved.release()
        assert tracker.released == ["handle"]

    def test_copies_are_refused(self):
        resource = ScopedResource("handle", Tracker())

        with pytest.raises(TypeError):
            copy.copy(resource)
        with pytest.raises(TypeError):
            copy.deepcopy(resource)
        with pytest.raises(TypeError):
            pickle.dumps(resource)

    def test_garbage_collection_releases(self):
        tracker = Tracker()
        resource = ScopedResource("handle", tracker)

        del resource

        assert tracker.released == ["handle"]

    def test_create_wraps_factory_failures(self):
        def factory():
            raise OSError("no handles left")

        with pytest.raises(HttpError, match="no handles left"):
            ScopedResource.create(factory, Tracker())

    def test_create_passes_http_errors_through(self):
        original = HttpError("already wrapped")

        def factory():
            raise original

        with pytest.raises(HttpError) as excinfo:
            ScopedResource.create(factory)
        assert excinfo.value is original

    def test_create_owns_value(self):
        tracker = Tracker()

        resource = ScopedResource.create(lambda: "built", tracker)
        resource.release()

        assert tracker.released == ["built"]


class TestHeaderList:
    def test_lines_in_order(self):
        headers = HeaderList()
        headers.append("A: 1")
        headers.append("B: 2")

        assert list(headers) == ["A: 1", "B: 2"]
        assert len(headers) == 2
        assert headers.value == ["A: 1", "B: 2"]

    def test_release_clears_shared_list(self):
        headers = HeaderList()
        headers.append("A: 1")
        shared = headers.value

        headers.release()

        assert shared == []
        assert len(headers) == 0
        assert not headers
