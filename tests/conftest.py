import pytest

from app import app as flask_app
from board import Grid
from tour import TourSolver


@pytest.fixture
def make_solver():
    """Build a solver over a fresh board of the requested size."""
    def _make(size, max_steps=None):
        return TourSolver(Grid(size), max_steps=max_steps)
    return _make


@pytest.fixture
def app(tmp_path):
    original = dict(flask_app.config)
    flask_app.config.update(
        TESTING=True,
        DATABASE=str(tmp_path / "games.db"),
        DOWNLOAD_DIR=str(tmp_path / "downloads"),
    )
    yield flask_app
    flask_app.config.clear()
    flask_app.config.update(original)


@pytest.fixture
def client(app):
    return app.test_client()
