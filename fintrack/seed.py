"""
Out-of-band project administration.

Projects are never created through the API. Use:

    python -m fintrack.seed create-project veritas25 --password 'p@ss'
    python -m fintrack.seed list-projects

Connection settings come from MONGO_URL / DB_NAME (or the .env file).
"""

import argparse
import asyncio
import sys

from pymongo.errors import DuplicateKeyError

from fintrack.auth import hash_password
from fintrack.database import client, create_indexes, db
from fintrack.models import Project


async def create_project(project_name: str, password: str) -> int:
    project_name = project_name.strip()
    if not project_name or not password:
        print("❌ Project name and password are required")
        return 1

    await create_indexes(db)

    existing = await db.projects.find_one({"project_name": project_name})
    if existing:
        print(f"   ⚠️  Project '{project_name}' already exists. Skipping...")
        return 1

    project = Project(project_name=project_name, password_hash=hash_password(password))
    try:
        result = await db.projects.insert_one(project.model_dump(exclude={"project_id"}))
    except DuplicateKeyError:
        print(f"   ⚠️  Project '{project_name}' already exists. Skipping...")
        return 1

    print(f"✅ Project '{project_name}' created (ID: {result.inserted_id})")
    return 0


async def list_projects() -> int:
    projects = await db.projects.find(
        {}, {"project_name": 1, "created_at": 1}
    ).sort("created_at", -1).to_list(length=None)

    if not projects:
        print("No projects yet.")
        return 0

    for project in projects:
        print(f"{project['_id']}  {project['project_name']}  {project.get('created_at')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fintrack.seed", description="Project administration")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-project", help="Create a password-gated project")
    create.add_argument("project_name")
    create.add_argument("--password", required=True)

    commands.add_parser("list-projects", help="List existing projects")
    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "create-project":
            return await create_project(args.project_name, args.password)
        return await list_projects()
    finally:
        client.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
