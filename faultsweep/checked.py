"""Checked operations and the cleanup scope a sweepable routine runs in.

Every fallible step of a routine goes through :func:`checked` or
:func:`expect`, which consult the active fault counter before doing any work
and hand back a :class:`Result`. Inside a :class:`Scope` a failed result ends
the routine early, and every resource acquired so far is released in reverse
order on the way out.

A routine written against this module looks like::

    @routine
    def talk(scope):
        a = scope.acquire(checked(socket.socket, AF_UNIX, SOCK_DGRAM), close_socket)
        scope.call(a.bind, "foo")
        scope.expect(lambda: a.fileno() >= 0, "socket is open")
"""

from __future__ import annotations

import errno
import functools
from contextlib import ExitStack
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, ClassVar, Union

from faultsweep.counter import FaultCounter, active_counter
from faultsweep.errors import CheckFailed, InjectedFault


class Status(IntEnum):
    """Outcome of one routine invocation."""

    OK = 0
    FAILED = -1


def is_success(status: Any) -> bool:
    """True if ``status`` reports success.

    ``None`` and ``0`` are success, any other integer is failure. Booleans
    read the natural way: ``True`` is success.
    """
    if status is None:
        return True
    if isinstance(status, bool):
        return status
    return status == 0


@dataclass(frozen=True)
class Ok:
    """A checked operation that succeeded."""

    value: Any = None
    ok: ClassVar[bool] = True

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Err:
    """A checked operation that failed, injected or not."""

    error: CheckFailed
    ok: ClassVar[bool] = False

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Ok, Err]


def _describe(func: Callable) -> str:
    return getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or repr(func)


def _trace(counter: FaultCounter | None, kind: str, detail: str) -> None:
    if counter is not None and counter.tracer is not None:
        counter.tracer.event(kind, detail, threshold=counter.threshold)


def _inject(counter: FaultCounter | None, what: str) -> Err | None:
    if counter is None or not counter.check():
        return None
    _trace(counter, "inject", what)
    return Err(InjectedFault(what, threshold=counter.threshold))


def checked(func: Callable, *args: Any, **kwargs: Any) -> Result:
    """Run one fallible operation.

    The active counter is consulted first; when it triggers, ``func`` is not
    called at all. Otherwise an ``OSError`` or ``CheckFailed`` raised by
    ``func`` becomes an :class:`Err` and its return value an :class:`Ok`.
    """
    what = _describe(func)
    counter = active_counter()
    _trace(counter, "call", what)

    injected = _inject(counter, what)
    if injected is not None:
        return injected

    try:
        value = func(*args, **kwargs)
    except CheckFailed as e:
        _trace(counter, "fail", what)
        return Err(e)
    except OSError as e:
        _trace(counter, "fail", what)
        return Err(CheckFailed(what, e))

    _trace(counter, "pass", what)
    return Ok(value)


def expect(condition: Any, what: str = "") -> Result:
    """Check a condition as a fallible step.

    ``condition`` may be a plain value or a zero-argument callable; a callable
    is only evaluated when the counter lets the step through.
    """
    what = what or (_describe(condition) if callable(condition) else repr(condition))
    counter = active_counter()
    _trace(counter, "call", what)

    injected = _inject(counter, what)
    if injected is not None:
        return injected

    try:
        value = condition() if callable(condition) else condition
    except CheckFailed as e:
        _trace(counter, "fail", what)
        return Err(e)
    except OSError as e:
        _trace(counter, "fail", what)
        return Err(CheckFailed(what, e))

    if not value:
        _trace(counter, "fail", what)
        return Err(CheckFailed(what))

    _trace(counter, "pass", what)
    return Ok(value)


@dataclass
class _Held:
    value: Any
    release: Callable[[Any], Any]
    detached: bool = False


class Scope(ExitStack):
    """Cleanup section for one routine invocation.

    Resources registered with :meth:`acquire` are released exactly once, in
    reverse order, on every exit path. A ``CheckFailed`` escaping the block
    is absorbed and recorded as ``status = Status.FAILED``; any other
    exception propagates after cleanup.
    """

    def __init__(self) -> None:
        super().__init__()
        self.status: Status = Status.OK
        self.error: CheckFailed | None = None
        self._held: list[_Held] = []

    def require(self, result: Any) -> Any:
        """Unwrap a result, leaving the scope early on failure."""
        if isinstance(result, Err):
            raise result.error
        if isinstance(result, Ok):
            return result.value
        return result

    def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        return self.require(checked(func, *args, **kwargs))

    def expect(self, condition: Any, what: str = "") -> Any:
        return self.require(expect(condition, what))

    def acquire(self, result: Any, release: Callable[[Any], Any]) -> Any:
        """Take ownership of a resource and schedule ``release(value)``."""
        value = self.require(result)
        held = _Held(value, release)
        self._held.append(held)
        self.callback(self._release, held)
        return value

    def defer(self, func: Callable, *args: Any, **kwargs: Any) -> None:
        """Run ``func`` on exit, whatever the outcome."""
        self.callback(func, *args, **kwargs)

    def detach(self, value: Any) -> Any:
        """Hand an acquired resource to the caller instead of releasing it."""
        for held in reversed(self._held):
            if not held.detached and (held.value is value or held.value == value):
                held.detached = True
                return value
        raise ValueError(f"{value!r} was not acquired in this scope")

    @property
    def held(self) -> list[Any]:
        """Resources this scope will still release."""
        return [h.value for h in self._held if not h.detached]

    def _release(self, held: _Held) -> None:
        if held.detached:
            return
        held.detached = True
        held.release(held.value)

    def __exit__(self, exc_type, exc, tb) -> bool:
        suppressed = super().__exit__(exc_type, exc, tb)
        if exc_type is not None and issubclass(exc_type, CheckFailed):
            self.status = Status.FAILED
            self.error = exc
            return True
        return suppressed


def routine(func: Callable[..., Any]) -> Callable[..., Status | int]:
    """Run ``func(scope, ...)`` inside a fresh :class:`Scope`.

    The wrapped callable returns ``Status.FAILED`` after an early exit,
    otherwise the function's own status (``Status.OK`` when it returns None).
    A returned :class:`Result` counts as its own outcome: ``Ok`` is success
    and ``Err`` is failure.
    Bind arguments with ``functools.partial`` to get a zero-argument routine
    for the sweep driver.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Status | int:
        outcome = None
        with Scope() as scope:
            outcome = func(scope, *args, **kwargs)
        if scope.status != Status.OK:
            return scope.status
        if isinstance(outcome, Err):
            return Status.FAILED
        if isinstance(outcome, Ok) or is_success(outcome):
            return Status.OK
        return outcome

    return wrapper


_MISSING = object()


def faulty(
    real: Callable,
    *,
    raises: Callable[[], BaseException] | None = None,
    returns: Any = _MISSING,
    name: str | None = None,
) -> Callable:
    """Wrap a real operation into a mock the active counter can fail.

    When the counter triggers, the mock raises ``raises()`` (by default an
    ``OSError(EIO)``) or, if ``returns`` is given, returns that value instead
    of calling ``real``. Meant to be installed with ``unittest.mock.patch``.
    """
    name = name or _describe(real)
    if raises is None and returns is _MISSING:
        raises = functools.partial(OSError, errno.EIO, f"injected failure: {name}")

    @functools.wraps(real, updated=())
    def mock(*args: Any, **kwargs: Any) -> Any:
        counter = active_counter()
        if counter is None or not counter.check():
            return real(*args, **kwargs)
        _trace(counter, "inject", f"mock failure: {name}")
        if raises is not None:
            raise raises()
        return returns

    mock.real = real
    return mock
