from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from passlib.context import CryptContext
from pymongo.errors import PyMongoError
import logging

from fintrack.database import serialize_doc
from fintrack.errors import AuthenticationError, PersistenceError
from fintrack.session import ProjectSession, current_time_ms

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


class ProjectAccessService:
    """
    Issues client-held session tokens for password-gated projects.

    Nothing is persisted on success; the returned token is the whole session.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def authenticate(
        self,
        project_name: str,
        password: str,
        now_ms: Optional[int] = None
    ) -> ProjectSession:
        """
        Validate a project name / password pair.

        Unknown project, wrong password, empty input and lookup failures all
        raise the same AuthenticationError.
        """
        project_name = (project_name or "").strip()
        if not project_name or not password:
            raise AuthenticationError()

        try:
            project = await self.db.projects.find_one({"project_name": project_name})
        except PyMongoError as e:
            logger.error(f"[AUTH] Project lookup failed: {str(e)}")
            raise AuthenticationError()

        if not project:
            # Spend the same hashing time as a real check
            pwd_context.dummy_verify()
            logger.info("[AUTH] Rejected access attempt")
            raise AuthenticationError()

        try:
            password_ok = verify_password(password, project.get("password_hash") or "")
        except ValueError:
            # Malformed stored hash
            logger.error(f"[AUTH] Unreadable password hash for project {project['_id']}")
            password_ok = False

        if not password_ok:
            logger.info("[AUTH] Rejected access attempt")
            raise AuthenticationError()

        session = ProjectSession(
            project_id=str(project["_id"]),
            project_name=project["project_name"],
            authenticated_at=now_ms if now_ms is not None else current_time_ms()
        )
        logger.info(f"[AUTH] Access granted to project {session.project_name}")
        return session

    async def list_projects(self) -> List[dict]:
        """Project summaries (no hashes), newest first"""
        try:
            cursor = self.db.projects.find(
                {},
                {"project_name": 1, "created_at": 1}
            ).sort("created_at", -1)
            projects = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"[AUTH] Project listing failed: {str(e)}")
            raise PersistenceError("Failed to load projects")

        return [serialize_doc(p) for p in projects]
