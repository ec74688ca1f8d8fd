import uuid
from typing import Dict, Tuple

from projectdesk.core.exceptions import WizardSessionNotFoundError
from projectdesk.services.form_store import ProjectFormStore


class WizardSessionRegistry:
    """
    In-process map of wizard session id → (owner id, form store).

    A session lives until it is submitted or discarded; nothing is shared
    between processes.
    """

    def __init__(self):
        self._sessions: Dict[str, Tuple[str, ProjectFormStore]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, owner_id: str) -> Tuple[str, ProjectFormStore]:
        session_id = uuid.uuid4().hex
        store = ProjectFormStore()
        self._sessions[session_id] = (str(owner_id), store)
        return session_id, store

    def get(self, session_id: str, owner_id: str) -> ProjectFormStore:
        entry = self._sessions.get(session_id)
        # Another user's session is reported as missing
        if entry is None or entry[0] != str(owner_id):
            raise WizardSessionNotFoundError(session_id)
        return entry[1]

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
