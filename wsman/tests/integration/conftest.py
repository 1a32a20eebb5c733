import os

import pytest


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    missing = not os.getenv("WSMAN_TEST_TARGET")
    if not missing:
        return
    mark_expr = getattr(config.option, "markexpr", "")
    if "integration" in mark_expr:
        return
    skip = pytest.mark.skip(reason="WSMAN_TEST_TARGET not set")
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip)


@pytest.fixture(scope="session")
def wsman_target() -> dict[str, str]:
    target = os.getenv("WSMAN_TEST_TARGET")
    if not target:
        pytest.fail("WSMAN_TEST_TARGET must be set to run integration tests.")
    return {
        "target": target,
        "username": os.getenv("WSMAN_TEST_USERNAME", "admin"),
        "password": os.getenv("WSMAN_TEST_PASSWORD", ""),
    }
