import io
import os

import PyPDF2
import docx

from authenticity.services.errors import InputValidationError

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def extract_text_from_bytes(filename: str, data: bytes) -> str:
    """
    Extracts text from an uploaded PDF, DOCX, or TXT file held in memory.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise InputValidationError(f"Unsupported file format: {ext or 'unknown'}")

    text = ""
    try:
        if ext == '.pdf':
            reader = PyPDF2.PdfReader(io.BytesIO(data))
            if len(reader.pages) == 0:
                raise InputValidationError("PDF is empty")
            for page in reader.pages:
                content = page.extract_text()
                if content:
                    text += content + "\n"

        elif ext == '.docx':
            document = docx.Document(io.BytesIO(data))
            for para in document.paragraphs:
                text += para.text + "\n"

        else:
            # Try utf-8, fall back to latin-1
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                text = data.decode("latin-1")

    except InputValidationError:
        raise
    except Exception as e:
        raise InputValidationError(f"Error parsing file: {e}") from e

    if not text.strip():
        raise InputValidationError("File contains no extractable text.")

    return text.strip()
