"""Fixtures spawning the stub-registry server for E2E tests."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncGenerator

import pytest

from tests.lsp.e2e.lsp_client import LspTestClient

_SERVER_MODULE = "tests.lsp.e2e.server_entry"
_SHUTDOWN_TIMEOUT = 5.0


class _PipeWriter:
    """Expose a subprocess stdin pipe through the writer interface the client uses."""

    def __init__(self, pipe: asyncio.StreamWriter) -> None:
        self._pipe = pipe

    def write(self, data: bytes) -> None:
        self._pipe.write(data)

    async def drain(self) -> None:
        await self._pipe.drain()


async def _stop(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=_SHUTDOWN_TIMEOUT)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()


@pytest.fixture
async def orglsp_process() -> AsyncGenerator[asyncio.subprocess.Process, None]:
    """Run the orglsp server on a sample registry, speaking LSP over stdio."""
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        _SERVER_MODULE,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        yield process
    finally:
        await _stop(process)


@pytest.fixture
async def lsp_client(
    orglsp_process: asyncio.subprocess.Process,
) -> AsyncGenerator[LspTestClient, None]:
    """LSP client bound to the server's stdout and stdin."""
    assert orglsp_process.stdout is not None
    assert orglsp_process.stdin is not None

    yield LspTestClient(
        reader=orglsp_process.stdout,
        writer=_PipeWriter(orglsp_process.stdin),  # type: ignore[arg-type]
    )
