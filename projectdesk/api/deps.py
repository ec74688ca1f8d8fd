"""Providers for the collaborators endpoints need; tests swap them via dependency_overrides."""
from functools import lru_cache

from fastapi import Depends, Request

from projectdesk.modules.oauth.google_provider import GoogleOAuthProvider, google_oauth
from projectdesk.services.documentation import DocumentationService
from projectdesk.services.wizard_sessions import WizardSessionRegistry
from projectdesk.utils.claude_client import ClaudeClient
from projectdesk.utils.storage_client import StorageClient, get_storage_client


def get_storage() -> StorageClient:
    return get_storage_client()


@lru_cache(maxsize=1)
def get_claude_client() -> ClaudeClient:
    return ClaudeClient()


def get_google_provider() -> GoogleOAuthProvider:
    return google_oauth


def get_documentation_service(
    storage: StorageClient = Depends(get_storage),
    claude: ClaudeClient = Depends(get_claude_client),
) -> DocumentationService:
    return DocumentationService(storage=storage, claude=claude)


def get_wizard_registry(request: Request) -> WizardSessionRegistry:
    return request.app.state.wizard_sessions
