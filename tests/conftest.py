"""
Pytest configuration for local imports and shared document fixtures.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import pytest
import reportlab.pdfgen.canvas

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

import design_lab.ingest
import design_lab.model

CARD_SIZE = (1013.0, 638.0)


#============================================
def _build_pdf(page_sizes: list[tuple[float, float]]) -> bytes:
	"""
	Build a small PDF with one marker word per page.

	Args:
		page_sizes: List of (width, height) in points.

	Returns:
		PDF bytes.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, invariant=1)
	for index, page_size in enumerate(page_sizes):
		pdf.setPageSize(page_size)
		pdf.setFont("Helvetica", 10)
		pdf.drawString(10, 10, f"PAGE{index + 1}")
		pdf.showPage()
	pdf.save()
	return buffer.getvalue()


#============================================
@pytest.fixture
def build_pdf():
	return _build_pdf


#============================================
@pytest.fixture
def card_pdf() -> bytes:
	return _build_pdf([CARD_SIZE])


#============================================
@pytest.fixture
def duplex_pdf() -> bytes:
	return _build_pdf([CARD_SIZE, CARD_SIZE])


#============================================
@pytest.fixture
def ready_template(duplex_pdf: bytes) -> design_lab.model.Template:
	"""
	A template with both sides ingested and no fields.
	"""
	template = design_lab.model.new_template("school-1", template_id="tpl-test", name="Test Card")
	result = design_lab.ingest.ingest_document(duplex_pdf)
	return design_lab.ingest.apply_ingestion(template, result)
