"""PDF and upload text extraction.

Uploads are spooled to a private file under the upload folder, dispatched on the
claimed extension, and removed again before the caller gets its result back.
"""
from __future__ import annotations

import io
import logging
import os
import shutil
import uuid
from contextlib import contextmanager
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple

import PyPDF2

from mango.errors import ExtractionFailed, UnsupportedFileType, UploadTooLarge

try:
    import fitz  # PyMuPDF
except Exception:
    fitz = None

try:
    from PIL import Image
except Exception:
    Image = None

try:
    import pytesseract
except Exception:
    pytesseract = None

# Ensure pytesseract can find the tesseract binary on common hosts.
if pytesseract is not None:
    try:
        if shutil.which("tesseract") is None:
            for cand in ("/usr/bin/tesseract", "/usr/local/bin/tesseract"):
                if os.path.exists(cand):
                    pytesseract.pytesseract.tesseract_cmd = cand
                    break
    except Exception:
        pass

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".txt", ".pdf", ".jpg", ".jpeg")
IMAGE_EXTENSIONS = (".jpg", ".jpeg")
CHUNK_SIZE = 64 * 1024


def file_extension(filename: str) -> str:
    return os.path.splitext((filename or "").strip())[1].lower()


def check_extension(filename: str) -> str:
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileType(details=f"Allowed types: {', '.join(ALLOWED_EXTENSIONS)}")
    return ext


def ocr_ready() -> Tuple[bool, str]:
    if Image is None:
        return False, "Pillow not available"
    if pytesseract is None:
        return False, "pytesseract not available"
    try:
        _ = pytesseract.get_tesseract_version()
    except Exception as e:
        return False, f"tesseract not available: {e}"
    return True, ""


def extract_pdf_text(file_storage) -> str:
    reader = PyPDF2.PdfReader(file_storage)
    parts: List[str] = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts).strip()


def ocr_pdf_bytes(pdf_bytes: bytes, lang: str = "eng", max_pages: int = 12) -> Tuple[str, str]:
    """Return OCR text and an error string.

    Used when a PDF has no text layer (scanned minutes, printed agendas).
    Pages are rendered at a fixed dpi and bounded by max_pages.
    """
    if fitz is None or Image is None or pytesseract is None:
        return "", "OCR dependencies missing"
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        return "", f"Could not open PDF for OCR: {e}"

    parts: List[str] = []
    try:
        pages = min(len(doc), max_pages)
        for i in range(pages):
            page = doc.load_page(i)
            pix = page.get_pixmap(dpi=220, alpha=False)
            img = Image.open(io.BytesIO(pix.tobytes("png"))).convert("L")
            parts.append(pytesseract.image_to_string(img, lang=lang) or "")
    except Exception as e:
        return "", f"OCR failed: {e}"
    finally:
        doc.close()
    return "\n".join(parts).strip(), ""


def ocr_image(path: str, lang: str = "eng") -> str:
    if Image is None or pytesseract is None:
        raise ExtractionFailed(details="Image OCR dependencies missing")
    with Image.open(path) as img:
        return (pytesseract.image_to_string(img, lang=lang) or "").strip()


def extract_text_from_path(path: str, ext: str, ocr_lang: str = "eng") -> Tuple[str, Dict[str, Any]]:
    """Extract plain text from a file already on disk.

    Returns (text, meta) where meta records the method used.
    """
    meta: Dict[str, Any] = {"extension": ext, "method": ""}
    try:
        if ext == ".txt":
            meta["method"] = "text"
            with open(path, "rb") as f:
                text = f.read().decode("utf-8", errors="replace")
        elif ext == ".pdf":
            meta["method"] = "pdf"
            with open(path, "rb") as f:
                data = f.read()
            text = extract_pdf_text(io.BytesIO(data))
            if not text.strip():
                meta["method"] = "pdf_ocr"
                text, err = ocr_pdf_bytes(data, lang=ocr_lang)
                if err:
                    raise ExtractionFailed(details=err)
        elif ext in IMAGE_EXTENSIONS:
            meta["method"] = "ocr"
            text = ocr_image(path, lang=ocr_lang)
        else:
            raise UnsupportedFileType()
    except (ExtractionFailed, UnsupportedFileType):
        raise
    except Exception as e:
        raise ExtractionFailed(details=f"{type(e).__name__}: {e}") from e

    meta["chars"] = len(text)
    return text, meta


def spool_upload(stream: BinaryIO, path: str, max_bytes: Optional[int]) -> int:
    written = 0
    with open(path, "wb") as out:
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if max_bytes is not None and written > max_bytes:
                raise UploadTooLarge()
            out.write(chunk)
    return written


@contextmanager
def temporary_upload(stream: BinaryIO, ext: str, upload_dir: str, max_bytes: Optional[int] = None) -> Iterator[str]:
    """Spool an upload to disk for the duration of the block.

    The file is removed on every exit path, including a failed spool.
    """
    os.makedirs(upload_dir, exist_ok=True)
    path = os.path.join(upload_dir, f"{uuid.uuid4().hex}{ext}")
    try:
        spool_upload(stream, path, max_bytes)
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)


def extract_text_from_upload(file_stream: BinaryIO, filename: str, upload_dir: str,
                             max_bytes: Optional[int] = None, ocr_lang: str = "eng") -> Tuple[str, Dict[str, Any]]:
    ext = check_extension(filename)
    with temporary_upload(file_stream, ext, upload_dir, max_bytes) as path:
        text, meta = extract_text_from_path(path, ext, ocr_lang=ocr_lang)
    logger.info("Extracted %d chars from %s upload via %s", meta["chars"], ext, meta["method"])
    return text, meta
