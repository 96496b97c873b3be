import io
import pdfplumber

def _extract(pdf, max_pages=None) -> str:
    pages = pdf.pages if max_pages is None else pdf.pages[:max_pages]
    return "\n".join((page.extract_text() or "") for page in pages)

def parse_pdf_text(path: str, max_pages: int | None = None) -> str:
    with pdfplumber.open(path) as pdf:
        return _extract(pdf, max_pages)

def parse_pdf_bytes(data: bytes, max_pages: int | None = None) -> str:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return _extract(pdf, max_pages)

def document_text(content_type: str, data: bytes) -> str:
    """Plain text for a resume or job description, by MIME type."""
    if content_type == "application/pdf":
        return parse_pdf_bytes(data)
    if content_type.startswith("text/"):
        return data.decode("utf-8", errors="replace")
    raise ValueError(f"unsupported document type: {content_type}")
