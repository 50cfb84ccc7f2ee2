import pytest

from drone_service.engine import ServiceLifecycleEngine


@pytest.fixture
def engine():
    return ServiceLifecycleEngine()


@pytest.fixture
def add(engine):
    """Create a job with sensible defaults; override any field by keyword."""
    def _add(priority="Regular", cost="50.00", client="jane doe", model="DJI Mavic", problem="broken rotor"):
        return engine.create_record(client, model, problem, cost, priority)
    return _add
