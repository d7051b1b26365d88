"""Scoped ownership for resources that must be released exactly once.

:class:`ScopedResource` pairs a value with the function that releases it.  The
release runs on :meth:`~ScopedResource.release`, on leaving a ``with`` block,
when the resource is reassigned through :meth:`~ScopedResource.reset`, or as a
last resort when the guard is garbage collected.  Releasing an empty guard is a
no-op, ownership can be handed to another guard with
:meth:`~ScopedResource.detach`, and copies are refused so two guards never
release the same value.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Iterator, List, Optional, TypeVar, Union

from .errors import HttpError

__all__ = ["ScopedResource", "HeaderList"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EMPTY = object()


class ScopedResource(Generic[T]):
    """Own ``value`` and call ``deleter(value)`` once when the scope ends.

    Args:
        value: The value to own.
        deleter: Called with the value on release; ``None`` means the value
            needs no cleanup.
    """

    def __init__(self, value: T, deleter: Optional[Callable[[T], None]] = None) -> None:
        self._deleter = deleter
        self._value: object = value

    @classmethod
    def create(
        cls, factory: Callable[[], T], deleter: Optional[Callable[[T], None]] = None
    ) -> "ScopedResource[T]":
        """Build the value with ``factory`` and own it.

        A factory that raises is reported as :class:`HttpError` so callers see a
        uniform initialisation failure.
        """
        try:
            value = factory()
        except HttpError:
            raise
        except Exception as exc:
            raise HttpError(str(exc)) from exc
        return cls(value, deleter)

    @property
    def value(self) -> T:
        """Return the owned value; raises ``ValueError`` once released or detached."""

        if self._value is _EMPTY:
            raise ValueError("resource has been released")
        return self._value  # type: ignore[return-value]

    @property
    def empty(self) -> bool:
        return self._value is _EMPTY

    def release(self) -> None:
        """Release the value now; later calls do nothing."""

        if self._value is _EMPTY:
            return
        value, self._value = self._value, _EMPTY
        if self._deleter is not None:
            self._deleter(value)  # type: ignore[arg-type]

    close = release

    def reset(self, value: Union[T, object] = _EMPTY) -> None:
        """Release the current value and take ownership of ``value`` (if given)."""

        self.release()
        self._value = value

    def detach(self) -> "ScopedResource[T]":
        """Move ownership into a new guard, leaving this one empty."""

        cls = type(self)
        moved = cls.__new__(cls)
        moved._deleter = self._deleter
        moved._value = self._value
        self._value = _EMPTY
        return moved

    def __enter__(self) -> T:
        return self.value

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __copy__(self):
        raise TypeError("ScopedResource cannot be copied; use detach() to move ownership")

    def __deepcopy__(self, memo):
        raise TypeError("ScopedResource cannot be copied; use detach() to move ownership")

    def __reduce__(self):
        raise TypeError("ScopedResource cannot be pickled")

    def __del__(self) -> None:
        if getattr(self, "_value", _EMPTY) is _EMPTY:
            return
        try:
            self.release()
        except Exception:  # pragma: no cover - interpreter teardown
            logger.debug("Error releasing resource during finalization", exc_info=True)


class HeaderList(ScopedResource[List[str]]):
    """Append-only list of ``"name: value"`` lines handed to the transfer engine.

    The engine only keeps a reference to the list, so the guard has to stay
    alive until the transfer finished; releasing it clears the lines.
    """

    def __init__(self) -> None:
        super().__init__([], list.clear)

    def append(self, line: str) -> None:
        self.value.append(line)

    def __iter__(self) -> Iterator[str]:
        return iter(self.value)

    def __len__(self) -> int:
        return 0 if self.empty else len(self.value)
