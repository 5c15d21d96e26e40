# Create (or promote) an admin user directly in MongoDB.
# Usage: set env MONGODB_URI / MONGODB_DB_NAME, then
#   python -m attendance_service.scripts.create_admin "Admin" admin@corp.com s3cret!
# The public /api/users/register endpoint only ever creates role=user.

import logging
import sys

from pymongo import MongoClient

from attendance_service.core.clock import utcnow
from attendance_service.core.config import get_settings
from attendance_service.core.security import hash_password
from attendance_service.models.user import Role, new_user_document

logger = logging.getLogger(__name__)


def create_admin(db, name: str, email: str, password: str) -> str:
    """이미 있는 이메일이면 role만 admin으로 올리고 비밀번호를 다시 설정."""
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")

    users = db["users"]
    existing = users.find_one({"email": email})
    if existing is not None:
        users.update_one(
            {"_id": existing["_id"]},
            {"$set": {"role": Role.ADMIN.value, "password": hash_password(password)}},
        )
        return str(existing["_id"])

    doc = new_user_document(name, email, hash_password(password), utcnow(), role=Role.ADMIN)
    return str(users.insert_one(doc).inserted_id)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 3:
        print("usage: create_admin NAME EMAIL PASSWORD", file=sys.stderr)
        return 2

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    client = MongoClient(settings.MONGODB_URI)
    try:
        user_id = create_admin(client[settings.MONGODB_DB_NAME], *argv)
    finally:
        client.close()

    logger.info("Admin user ready: %s", user_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
