from fastapi import APIRouter, Depends, Request

from projectdesk.api.deps import get_claude_client
from projectdesk.core.rate_limiter import ai_operation_rate_limit
from projectdesk.models.user import User
from projectdesk.modules.auth.dependencies import get_current_user
from projectdesk.schemas.generation import CodeGenerationRequest, CodeGenerationResponse
from projectdesk.services.documentation import generate_code_snippet
from projectdesk.utils.claude_client import ClaudeClient

router = APIRouter()


@router.post("/code", response_model=CodeGenerationResponse)
@ai_operation_rate_limit()
async def generate_code(
    request: Request,
    payload: CodeGenerationRequest,
    current_user: User = Depends(get_current_user),
    claude: ClaudeClient = Depends(get_claude_client),
):
    text = await generate_code_snippet(claude, payload.title, payload.description, payload.language)
    return CodeGenerationResponse(suggestedMessages=text)
