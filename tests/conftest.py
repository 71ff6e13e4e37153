import pytest

import storage


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Point tool history at a throwaway SQLite file for every test."""
    storage.set_db_path(tmp_path / "claims_memory.db")
    yield tmp_path / "claims_memory.db"
    storage.set_db_path(None)
