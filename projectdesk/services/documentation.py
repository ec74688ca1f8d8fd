"""
Developer documentation for a submitted project.

Two sources:
- a fixed HTML template filled from the wizard's project details
- an uploaded client document, rewritten by Claude into a structured spec
"""

import asyncio
import re
from html import escape
from pathlib import PurePath
from typing import Iterable, Optional

from anthropic import APIStatusError

from projectdesk.core.config import settings
from projectdesk.core.exceptions import (
    DocumentGenerationError,
    DocumentationInputError,
    InvalidFileTypeError,
    ProjectDeskError,
    ValidationError,
)
from projectdesk.core.logging_config import logger
from projectdesk.schemas.wizard import ImprovedDocumentation, UploadedDocumentation
from projectdesk.utils.claude_client import ClaudeClient
from projectdesk.utils.markdown_html import render_safe_markdown
from projectdesk.utils.pdf_text import extract_text_from_pdf
from projectdesk.utils.storage_client import StorageClient


ALLOWED_DOCUMENT_EXTENSIONS = ["pdf"]

MISSING_CODE_FIELDS_MESSAGE = "Missing required fields: title, description, or language"


# ============================================
# Template path
# ============================================

def generate_sample_documentation(
    project_name: Optional[str],
    project_overview: Optional[str],
    development_areas: Iterable[str] = (),
) -> str:
    if not project_name or not project_name.strip():
        raise DocumentationInputError("projectName")
    if not project_overview or not project_overview.strip():
        raise DocumentationInputError("projectOverview")

    areas = [a for a in development_areas if a and a.strip()]
    area_items = "\n".join(f"    <li>{escape(area)}</li>" for area in areas) or "    <li>To be decided</li>"
    name = escape(project_name.strip())

    return f"""<div>
  <h1>🔷 {name} - Developer Documentation</h1>
  <h2>📌 Project Overview</h2>
  <p>{escape(project_overview.strip())}</p>
  <h2>📌 Development Areas</h2>
  <ul>
{area_items}
  </ul>
  <h2>📌 Project Structure</h2>
  <h3>🔹 Frontend</h3>
  <ul>
    <li>✅ Responsive user interface for every target device</li>
    <li>✅ Reusable component library and shared layout</li>
    <li>✅ Client-side form validation and error states</li>
  </ul>
  <h3>🔹 Backend</h3>
  <ul>
    <li>✅ REST API with authentication and role-based access</li>
    <li>✅ Persistent storage for core entities</li>
    <li>✅ Logging and error reporting</li>
  </ul>
  <h2>📌 Technical Implementation</h2>
  <ol>
    <li>1️⃣ Set up repository, environments and CI</li>
    <li>2️⃣ Implement data model and API for {name}</li>
    <li>3️⃣ Build the interface, integrate, test and deploy</li>
  </ol>
</div>"""


# ============================================
# AI path
# ============================================

IMPROVEMENT_SYSTEM_PROMPT = (
    "You are an expert project architect and senior developer. "
    "You turn loosely written client documents into precise developer specifications."
)

IMPROVEMENT_PROMPT = """Analyze, improve and structure the client's developer document below into a clear,
complete and developer-friendly specification.

## Client-Provided Developer Document
```
{document_text}
```

## Step 1: Document Improvement
- Clarify ambiguous points.
- Add missing but necessary details.
- Remove redundant or unclear statements.

## Step 2: Structured Project Breakdown
Write the result in Markdown with these sections, generating concrete content for every placeholder:

### 1. Project Overview
Project name, main objective, key features, target users, tech stack.

### 2. Project Structure
Frontend, backend, database, API layer, real-time features (if any), and role-based panels
(admin, developer, client) where applicable.

### 3. Pages & Components Breakdown
For each page or component: purpose, features, data requirements, component breakdown,
implementation notes, table schema (as a Markdown table, if applicable) and API endpoints
(as a Markdown table with Endpoint, Method, Description).

### 4. Workflow Summary
A numbered, step-by-step description of the full process.

### 5. Tech Stack & Implementation
Recommended technologies, development best practices (code structure, security, performance),
setup instructions in a fenced bash block, and additional recommendations.

The document will be exported to PDF: use clear headings, bullet points, tables and code
snippets where needed. Start directly with the first "##" heading.
"""

IMPROVED_DOCUMENT_TEMPLATE = """<div>
  <h1>{title} - Developer Documentation</h1>
{body}
</div>"""

_PREAMBLE_RE = re.compile(r"^##", re.MULTILINE)


def strip_preamble(text: str) -> str:
    """Drop any chatter the model puts before its first '##' heading"""
    match = _PREAMBLE_RE.search(text or "")
    if match is None:
        return (text or "").strip()
    return text[match.start():].strip()


def _extension(file_name: str) -> str:
    return PurePath(file_name or "").suffix.lower().lstrip(".")


class DocumentationService:
    """Uploads client documents and asks Claude to rewrite them"""

    def __init__(self, storage: StorageClient, claude: ClaudeClient):
        self.storage = storage
        self.claude = claude

    def _check_pdf(self, file_bytes: bytes, file_name: str) -> None:
        if _extension(file_name) not in ALLOWED_DOCUMENT_EXTENSIONS:
            raise InvalidFileTypeError(_extension(file_name) or "unknown", ALLOWED_DOCUMENT_EXTENSIONS)
        if not file_bytes:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(file_bytes) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(
                f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB upload limit",
                field="file"
            )

    async def upload_documentation(self, file_bytes: bytes, file_name: str) -> UploadedDocumentation:
        self._check_pdf(file_bytes, file_name)
        stored = await self.storage.upload_bytes_async(file_bytes, file_name, folder="documentation")
        return UploadedDocumentation(
            file_name=stored.original_filename,
            url=stored.url,
            size=len(file_bytes),
        )

    async def improve_from_pdf(
        self,
        file_bytes: bytes,
        file_name: str,
        project_name: Optional[str] = None,
    ) -> ImprovedDocumentation:
        """
        Upload the client's PDF, extract its text and have Claude restructure it.

        Single attempt. Any failure of storage, extraction or the model is
        raised as DocumentGenerationError; the caller keeps whatever
        documentation it had before.
        """
        self._check_pdf(file_bytes, file_name)

        try:
            stored = await self.storage.upload_bytes_async(file_bytes, file_name, folder="documentation/source")
            document_text = await asyncio.to_thread(extract_text_from_pdf, file_bytes)
            response = await self.claude.generate(
                prompt=IMPROVEMENT_PROMPT.format(document_text=document_text.strip()),
                system_prompt=IMPROVEMENT_SYSTEM_PROMPT,
            )
        except APIStatusError as e:
            logger.log_failure(e, operation="documentation.improve", file_name=file_name)
            raise DocumentGenerationError(
                f"Documentation service returned {e.status_code}: {e.message}",
                status=e.status_code
            ) from e
        except ProjectDeskError as e:
            logger.log_failure(e, operation="documentation.improve", file_name=file_name)
            raise DocumentGenerationError(e.message) from e
        except Exception as e:
            logger.log_failure(e, operation="documentation.improve", file_name=file_name)
            raise DocumentGenerationError(f"Documentation improvement failed: {e}") from e

        markdown_text = strip_preamble(response.get("content", ""))
        if not markdown_text:
            raise DocumentGenerationError("Documentation service returned an empty document")

        title = escape((project_name or PurePath(file_name).stem or "Project").strip())
        html = IMPROVED_DOCUMENT_TEMPLATE.format(title=title, body=render_safe_markdown(markdown_text))
        logger.info(
            f"Improved documentation generated from {file_name}",
            extra={"event_type": "documentation_improved", "tokens_used": response.get("total_tokens", 0)}
        )
        return ImprovedDocumentation(html=html, source_url=stored.url)


# ============================================
# Code snippet generation
# ============================================

CODE_GENERATION_PROMPT = """You are a code generation model. Given a title, a description and a programming
language, write the most efficient, accurate and well-documented solution.
1. Clarity: the code must be easy to read.
2. Efficiency: avoid unnecessary computation and pick suitable algorithms.
3. Best practices: follow the language's naming, error handling and module conventions.

Respond only with the generated code, without additional explanation."""


async def generate_code_snippet(
    claude: ClaudeClient,
    title: Optional[str],
    description: Optional[str],
    language: Optional[str],
) -> str:
    if not title or not description or not language:
        raise ValidationError(MISSING_CODE_FIELDS_MESSAGE)

    prompt = f"{CODE_GENERATION_PROMPT}\n\ntitle: {title}\ndescription: {description}\nLanguage: {language}"
    try:
        response = await claude.generate(prompt=prompt)
    except APIStatusError as e:
        logger.log_failure(e, operation="generation.code")
        raise DocumentGenerationError(e.message, status=e.status_code) from e
    except Exception as e:
        logger.log_failure(e, operation="generation.code")
        raise DocumentGenerationError(str(e)) from e
    return response.get("content", "")
