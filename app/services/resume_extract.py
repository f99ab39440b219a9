from __future__ import annotations

import asyncio
from io import BytesIO
from zipfile import BadZipFile, ZipFile

from app.ai.types import ImageTextReader, TextGenerationError
from app.schemas.career import ResumeSourceType, ResumeTextResponse

TEXT_EXTENSIONS = {"txt", "md"}
IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}
ALLOWED_EXTENSIONS = TEXT_EXTENSIONS | {"pdf", "docx"} | set(IMAGE_MIME_TYPES)

PDF_MAGIC = b"%PDF-"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"
GIF_MAGICS = (b"GIF87a", b"GIF89a")
BMP_MAGIC = b"BM"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _is_docx_payload(content: bytes) -> bool:
    if not any(content.startswith(prefix) for prefix in ZIP_MAGICS):
        return False
    try:
        with ZipFile(BytesIO(content)) as archive:
            return any(name.startswith("word/") for name in archive.namelist())
    except BadZipFile:
        return False


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return False
    sample = content[:4096]
    if b"\x00" in sample:
        return False
    printable = sum(1 for byte in sample if byte in (9, 10, 13) or 32 <= byte <= 126 or byte >= 128)
    return (printable / len(sample)) >= 0.75


def _signature_matches(ext: str, content: bytes) -> bool:
    if ext == "pdf":
        return content.startswith(PDF_MAGIC)
    if ext == "docx":
        return _is_docx_payload(content)
    if ext in TEXT_EXTENSIONS:
        return _is_probably_text_payload(content)
    if ext == "png":
        return content.startswith(PNG_MAGIC)
    if ext in {"jpg", "jpeg"}:
        return content.startswith(JPEG_MAGIC)
    if ext == "gif":
        return any(content.startswith(magic) for magic in GIF_MAGICS)
    if ext == "bmp":
        return content.startswith(BMP_MAGIC)
    if ext == "webp":
        return len(content) >= 12 and content.startswith(b"RIFF") and content[8:12] == b"WEBP"
    return False


def validate_resume_upload(filename: str, content: bytes) -> str:
    ext = file_extension(filename)
    if ext == "doc":
        raise ValueError("Legacy .doc is not supported. Convert to .docx.")
    if ext not in ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )
    if not _signature_matches(ext, content):
        raise ValueError(f"File signature does not match .{ext} content.")
    return ext


def _decode_text(content: bytes) -> str:
    for encoding in ("utf-8", "utf-16", "latin-1"):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return ""


def _pdf_text(content: bytes) -> str:
    from pypdf import PdfReader

    try:
        reader = PdfReader(BytesIO(content))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as exc:
        raise ValueError(
            "Failed to extract text from PDF. The file might be corrupted or password-protected."
        ) from exc
    return "\n".join(page for page in pages if page)


def _docx_text(content: bytes) -> str:
    from docx import Document

    try:
        document = Document(BytesIO(content))
    except Exception as exc:
        raise ValueError("Failed to extract text from this Word document.") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text.strip())


async def extract_resume_text(
    filename: str,
    content: bytes,
    *,
    image_reader: ImageTextReader | None = None,
    min_chars: int = 10,
) -> ResumeTextResponse:
    ext = validate_resume_upload(filename, content)

    source_type: ResumeSourceType
    if ext in TEXT_EXTENSIONS:
        source_type = "text"
        text = _decode_text(content)
    elif ext == "pdf":
        source_type = "pdf"
        text = await asyncio.to_thread(_pdf_text, content)
    elif ext == "docx":
        source_type = "word"
        text = await asyncio.to_thread(_docx_text, content)
    else:
        source_type = "image"
        if image_reader is None:
            raise ValueError("Image text extraction is not configured. Upload a PDF or paste the text.")
        try:
            text = await image_reader.read_image_text(content, IMAGE_MIME_TYPES[ext])
        except TextGenerationError as exc:
            raise ValueError("Failed to extract text from image.") from exc

    cleaned = " ".join(text.split())
    if len(cleaned) < min_chars:
        raise ValueError("No readable text found in the file. It appears to be empty.")

    return ResumeTextResponse(
        file_name=filename,
        source_type=source_type,
        text=cleaned,
        characters=len(cleaned),
    )
