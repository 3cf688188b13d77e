"""Pytest configuration and shared fixtures."""

import sys
import asyncio
import inspect
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from schedule_widget.sync.remote_store import NOT_FOUND, Blob, BlobStore, ConflictError, RemoteError


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute async tests without external plugins."""
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            sig = inspect.signature(testfunction)
            call_kwargs = {name: pyfuncitem.funcargs[name] for name in sig.parameters}
            loop.run_until_complete(testfunction(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


class InMemoryBlobStore(BlobStore):
    """Blob store that enforces version tokens like the contents API."""

    def __init__(self):
        self.content: Optional[bytes] = None
        self.version: Optional[str] = None
        self.reads = 0
        self.writes: List[Tuple[str, bytes, Optional[str], str]] = []
        self.fail_with: Optional[RemoteError] = None
        self._revision = 0

    def _bump(self, content: bytes) -> str:
        self._revision += 1
        self.content = content
        self.version = f"sha-{self._revision}"
        return self.version

    def external_write(self, content: bytes) -> str:
        """Simulate another session saving the document."""
        return self._bump(content)

    async def fetch_blob(self, path):
        self.reads += 1
        if self.fail_with:
            raise self.fail_with
        if self.content is None:
            return NOT_FOUND
        return Blob(content=self.content, version=self.version)

    async def put_blob(self, path, content, expected_version, message):
        if self.fail_with:
            raise self.fail_with
        if self.content is not None and expected_version != self.version:
            raise ConflictError("is at a different sha", 409, '{"message": "is at a different sha"}')
        self.writes.append((path, content, expected_version, message))
        return self._bump(content)


@pytest.fixture
def memory_store():
    return InMemoryBlobStore()
