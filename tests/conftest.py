import pytest

from study_tracker.db import init_db, create_group


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tracker.db")
    return db_path


@pytest.fixture
def ready_db(tmp_db):
    """An initialized database with one subject group (id 1, "Math")."""
    init_db(tmp_db)
    create_group(tmp_db, "Math")
    return tmp_db
