import logging

import pytest

from callwatch.dispatcher import compile_pattern


@pytest.fixture(autouse=True)
def _clear_pattern_cache():
    """Compiled wildcard patterns are cached process-wide; start each test cold."""
    compile_pattern.cache_clear()
    yield
    compile_pattern.cache_clear()


@pytest.fixture
def bare_root_logger():
    """Detach root handlers (pytest installs its own) and restore them afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    for handler in handlers:
        root.removeHandler(handler)
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.hookimpl(hookwrapper=True, trylast=True)
def pytest_runtest_call(item):
    """pytest's logging plugin re-attaches capture handlers to the root logger
    for the call phase; detach them there too for tests using bare_root_logger."""
    if "bare_root_logger" not in item.fixturenames:
        yield
        return
    root = logging.getLogger()
    captured = root.handlers[:]
    for handler in captured:
        root.removeHandler(handler)
    try:
        yield
    finally:
        for handler in captured:
            root.addHandler(handler)
