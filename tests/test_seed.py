import pytest

from fintrack import seed
from fintrack.auth import verify_password


@pytest.fixture
def seed_db(mock_db, monkeypatch):
    monkeypatch.setattr(seed, "db", mock_db)
    return mock_db


class TestCreateProject:

    @pytest.mark.asyncio
    async def test_creates_project_with_hashed_password(self, seed_db, capsys):
        assert await seed.create_project("veritas25", "p@ss") == 0

        project = await seed_db.projects.find_one({"project_name": "veritas25"})
        assert project["password_hash"] != "p@ss"
        assert verify_password("p@ss", project["password_hash"])
        assert "✅" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_duplicate_name_skipped(self, seed_db, capsys):
        await seed.create_project("veritas25", "p@ss")
        assert await seed.create_project(" veritas25 ", "other") == 1
        assert await seed_db.projects.count_documents({}) == 1
        assert "already exists" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_empty_password_rejected(self, seed_db):
        assert await seed.create_project("veritas25", "") == 1
        assert await seed_db.projects.count_documents({}) == 0


@pytest.mark.asyncio
async def test_list_projects(seed_db, capsys):
    await seed.create_project("alpha", "a")
    capsys.readouterr()
    assert await seed.list_projects() == 0
    out = capsys.readouterr().out
    assert "alpha" in out
    assert "$2" not in out


def test_parser():
    args = seed.build_parser().parse_args(["create-project", "veritas25", "--password", "p@ss"])
    assert (args.command, args.project_name, args.password) == ("create-project", "veritas25", "p@ss")

    with pytest.raises(SystemExit):
        seed.build_parser().parse_args(["create-project", "veritas25"])
