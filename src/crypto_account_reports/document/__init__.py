"""Printable document model built from report data."""

from crypto_account_reports.document.assembler import Document, DocumentAssembler, footer_text, suggested_filename

__all__ = ["Document", "DocumentAssembler", "footer_text", "suggested_filename"]
