import io

import pdfplumber
import PyPDF2

from projectdesk.core.exceptions import TextExtractionError
from projectdesk.core.logging_config import logger


def extract_text_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes, pdfplumber first and PyPDF2 as fallback"""
    text = ""

    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text += page_text + "\n\n"
        if text.strip():
            logger.info(f"Extracted {len(text)} chars using pdfplumber")
            return text
    except Exception as e:
        logger.warning(f"pdfplumber extraction failed: {e}")

    try:
        reader = PyPDF2.PdfReader(io.BytesIO(content))
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text += page_text + "\n\n"
        if text.strip():
            logger.info(f"Extracted {len(text)} chars using PyPDF2")
            return text
    except Exception as e:
        logger.warning(f"PyPDF2 extraction failed: {e}")

    raise TextExtractionError(
        "Could not extract text from PDF. Please ensure the PDF contains readable text (not scanned images)."
    )
