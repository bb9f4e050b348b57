"""Shared fixtures."""

import socket

import pytest


def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def port_factory():
    """Callable returning a TCP port on 127.0.0.1 that was free a moment ago."""
    return _find_free_port


@pytest.fixture
def free_port(port_factory) -> int:
    return port_factory()
