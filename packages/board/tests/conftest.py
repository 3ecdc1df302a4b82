"""
Shared fixtures for board tests.
"""

from datetime import date

import pytest

from portal_shared.schemas.common import ClientType
from portal_shared.schemas.projects import ProjectCreate
from portal_board.store import DocumentStore


@pytest.fixture
async def store(tmp_path):
    s = DocumentStore(str(tmp_path / "portal.db"))
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def project_in() -> ProjectCreate:
    return ProjectCreate(
        name="Downtown Traffic Study",
        client="City of Example",
        client_type=ClientType.PUBLIC,
        start_date=date(2024, 1, 8),
        due_date=date(2024, 4, 30),
        tasks=[
            {"id": "1", "name": "Scope", "order": 1, "completed": True},
            {"id": "2", "name": "Counts", "order": 1},
        ],
    )
