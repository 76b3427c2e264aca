import uuid
from datetime import datetime, timezone


class IdentityAssigner:
    """Issues record ids and creation timestamps."""

    def new_id(self) -> str:
        return str(uuid.uuid4())

    def now(self) -> str:
        return datetime.now(timezone.utc).isoformat()
