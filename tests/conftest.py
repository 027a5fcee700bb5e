"""
Pytest configuration and fixtures for Stellar Skies Console tests.
"""

import asyncio

import pytest

from stellar_console.tools.registry import ToolDefinition, ToolRegistry
from stellar_console.tools.weather import WeatherInput


@pytest.fixture
def gated_registry():
    """A registry whose ``weather`` tool blocks until released.

    Yields ``(registry, started, release)``; the events must be created on
    the loop that runs the test, so they are built lazily by ``make``.
    """

    class Gate:
        def __init__(self):
            self.started = None
            self.release = None

        def make(self) -> ToolRegistry:
            self.started = asyncio.Event()
            self.release = asyncio.Event()

            async def _handle(params: WeatherInput) -> dict:
                self.started.set()
                await self.release.wait()
                return {"location": params.location}

            registry = ToolRegistry()
            registry.register(
                ToolDefinition(
                    name="weather",
                    description="Gated weather tool",
                    input_model=WeatherInput,
                    handler=_handle,
                    formatter=lambda result: f"weather for {result['location']}",
                )
            )
            return registry

    return Gate()


@pytest.fixture
def failing_registry():
    """A registry whose ``weather`` tool always raises."""

    def _handle(params: WeatherInput) -> dict:
        raise RuntimeError(f"sensor array offline over {params.location}")

    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name="weather",
            description="Broken weather tool",
            input_model=WeatherInput,
            handler=_handle,
            formatter=str,
        )
    )
    return registry
