#!/usr/bin/env python3
"""
Text Extractor - Turn a receipt PDF into an ordered list of text lines
Uses pdfplumber page text, with PDFMiner as fallback
"""

import logging
from pathlib import Path
from typing import List, Optional

import pdfplumber
from pdfminer.high_level import extract_text as pdfminer_extract_text

from .config import TEXT_EXTRACTION_THRESHOLD

logger = logging.getLogger(__name__)


def extract_text_from_pdf(pdf_path: Path, threshold: int = TEXT_EXTRACTION_THRESHOLD) -> Optional[str]:
    """
    Extract text from PDF using pdfplumber (preferred) or PDFMiner (fallback)
    
    Args:
        pdf_path: Path to PDF file
        threshold: Minimum character count before the fallback is tried
        
    Returns:
        Extracted text or None if extraction fails
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"Receipt PDF not found: {pdf_path}")
    
    text = None
    try:
        pages = []
        with pdfplumber.open(str(pdf_path)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
        text = '\n'.join(pages)
        if len(text.strip()) >= threshold:
            logger.debug(f"Extracted text using pdfplumber: {len(text)} chars")
            return text
    except Exception as e:
        logger.warning(f"pdfplumber extraction failed for {pdf_path}: {e}, falling back to PDFMiner")
    
    try:
        fallback = pdfminer_extract_text(str(pdf_path))
        logger.debug(f"Extracted text using PDFMiner: {len(fallback)} chars")
        return fallback if fallback and fallback.strip() else text
    except Exception as e:
        logger.error(f"PDFMiner extraction failed for {pdf_path}: {e}")
        return text


def split_lines(text: Optional[str]) -> List[str]:
    """Split extracted text into lines, dropping empty ones"""
    if not text:
        return []
    return [line.rstrip() for line in text.split('\n') if line.strip()]


def extract_lines(pdf_path: Path) -> List[str]:
    """Ordered, non-empty text lines of one receipt PDF"""
    return split_lines(extract_text_from_pdf(pdf_path))
