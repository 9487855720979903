"""Pytest configuration for BDD tests."""

import pytest

from tests._fixtures.transport import FakeTransport, fake_transport_class


@pytest.fixture
def session_context():
    """Shared state between the steps of one scenario."""
    return {
        "transport_class": fake_transport_class(FakeTransport),
        "session": None,
        "error": None,
    }


def pytest_bdd_step_error(request, feature, scenario, step, step_func, step_func_args, exception):
    """Enhanced error reporting for BDD steps."""
    print(f"\n{'='*60}")
    print(f"STEP FAILED: {step.keyword} {step.name}")
    print(f"Feature: {feature.name}")
    print(f"Scenario: {scenario.name}")
    print(f"Error: {exception}")
    print(f"{'='*60}\n")
