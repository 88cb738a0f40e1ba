"""Async pipeline passing a payload through an ordered chain of pipes.

A pipe receives ``(payload, next)``. It may transform the payload and forward
it with ``next(payload)``, return its own value to end the chain early, or
raise. Pipes may be plain functions, classes exposing ``handle`` (instantiated
fresh for every invocation) or already-built objects exposing ``handle``.
Both sync and async pipes are accepted; awaitable results are awaited.

Example:
    result = await Pipeline().send(2).through([double, Square]).then_return()
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence

from core.exceptions import DoubleInvocation, InvalidPipe, describe_identifier

Next = Callable[[Any], Awaitable[Any]]


class PipeKind(Enum):
    """How a stage is invoked; fixed when the pipe list is declared."""
    FUNCTION = "function"
    CLASS = "class"
    HANDLER = "handler"


@dataclass(frozen=True)
class Stage:
    """A declared pipe together with its invocation kind."""
    pipe: Any
    kind: PipeKind

    @classmethod
    def of(cls, pipe: Any) -> "Stage":
        if isinstance(pipe, Stage):
            return pipe
        if inspect.isclass(pipe):
            if not callable(getattr(pipe, "handle", None)):
                raise InvalidPipe(f"Pipe class {pipe.__name__} does not define handle()")
            return cls(pipe, PipeKind.CLASS)
        if callable(getattr(pipe, "handle", None)):
            return cls(pipe, PipeKind.HANDLER)
        if callable(pipe):
            return cls(pipe, PipeKind.FUNCTION)
        raise InvalidPipe(f"Invalid pipe: {pipe!r}")

    def __str__(self) -> str:
        return f"{self.kind.value}:{describe_identifier(self.pipe)}"


class _Run:
    """State of a single execution: stages, terminal step and highest index."""

    def __init__(self, stages: Sequence[Stage], destination: Optional[Callable[[Any], Any]], factory):
        self.stages = stages
        self.destination = destination
        self.factory = factory
        self.highest = -1

    def advance(self, index: int, value: Any) -> Awaitable[Any]:
        # Checked when next() is called, not when its result is awaited
        if index <= self.highest:
            raise DoubleInvocation(index, self.highest)
        self.highest = index
        return self._invoke(index, value)

    async def _invoke(self, index: int, value: Any) -> Any:
        # One suspension point per step
        await asyncio.sleep(0)
        if index == len(self.stages):
            if self.destination is None:
                return value
            return await _settle(self.destination(value))

        stage = self.stages[index]

        def next_(payload: Any) -> Awaitable[Any]:
            return self.advance(index + 1, payload)

        if stage.kind is PipeKind.CLASS:
            result = self.factory(stage.pipe).handle(value, next_)
        elif stage.kind is PipeKind.HANDLER:
            result = stage.pipe.handle(value, next_)
        else:
            result = stage.pipe(value, next_)
        return await _settle(result)


async def _settle(result: Any) -> Any:
    while inspect.isawaitable(result):
        result = await result
    return result


class Pipeline:
    """Chainable async pipeline runner.

    Attributes:
        container: Optional container used to instantiate class pipes
    """

    def __init__(self, container=None):
        self.container = container
        self._payload: Any = None
        self._stages: List[Stage] = []

    def send(self, payload: Any) -> "Pipeline":
        """Set the payload sent through the pipeline."""
        self._payload = payload
        return self

    def through(self, pipes: Any) -> "Pipeline":
        """Declare the pipes to run, replacing any previous list."""
        if not isinstance(pipes, Iterable) or isinstance(pipes, (str, bytes)):
            pipes = [pipes]
        self._stages = [Stage.of(pipe) for pipe in pipes]
        return self

    def pipe(self, *pipes: Any) -> "Pipeline":
        """Append pipes to the declared list."""
        self._stages.extend(Stage.of(pipe) for pipe in pipes)
        return self

    @property
    def stages(self) -> List[Stage]:
        return list(self._stages)

    async def then(self, destination: Callable[[Any], Any]) -> Any:
        """Run the pipeline with ``destination`` as the final step."""
        return await self._run(destination)

    async def then_return(self) -> Any:
        """Run the pipeline and return the resulting payload."""
        return await self._run(None)

    async def _run(self, destination: Optional[Callable[[Any], Any]]) -> Any:
        run = _Run(list(self._stages), destination, self._instantiate)
        return await run.advance(0, self._payload)

    def _instantiate(self, pipe_class: type) -> Any:
        if self.container is not None:
            return self.container.make(pipe_class)
        return pipe_class()
