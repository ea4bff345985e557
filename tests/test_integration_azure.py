"""
Integration tests against a real Azure Document Intelligence resource.

These tests require Azure Document Intelligence to be configured:
- Set AZ_DI_ENDPOINT in .env
- Set AZ_DI_API_KEY in .env

Run with: pytest --run-integration
Place sample invoices (PDF or images) in samples/invoices/.
"""

import pytest
from pathlib import Path
from fastapi.testclient import TestClient
from invoice_markup.api.main import app
from invoice_markup.core.config import settings

client = TestClient(app)

skip_if_no_azure_di = pytest.mark.skipif(
    not settings.azure_configured,
    reason="Azure Document Intelligence not configured (set AZ_DI_ENDPOINT and AZ_DI_API_KEY)",
)

SAMPLES_DIR = Path(__file__).parent.parent / "samples" / "invoices"
SAMPLE_FILES = sorted(
    path for path in SAMPLES_DIR.glob("*") if path.suffix.lower() in (".pdf", ".jpg", ".jpeg", ".png")
) if SAMPLES_DIR.exists() else []

CONTENT_TYPES = {".pdf": "application/pdf", ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}


@skip_if_no_azure_di
@pytest.mark.integration
@pytest.mark.parametrize("provider", ["azure", "azure-read"])
@pytest.mark.parametrize("invoice_file", SAMPLE_FILES, ids=lambda path: path.name)
def test_process_real_invoice(invoice_file, provider):
    """Every sample produces a well-formed, priced response"""
    with open(invoice_file, "rb") as f:
        files = {"file": (invoice_file.name, f, CONTENT_TYPES[invoice_file.suffix.lower()])}
        r = client.post(f"/invoices/process?provider={provider}", files=files)

    assert r.status_code == 200
    data = r.json()

    assert data["items"], "at least one item (or placeholder) expected"
    assert data["summary"]["totalItems"] == len(data["items"])
    for item in data["items"]:
        assert item["category"] in ("Organic", "Supplements", "Bulk", "Cosmetics", "Groceries")
        assert item["retailPrice"] >= item["costExGST"]

    print(f"\n{invoice_file.name} ({provider}): {data['supplier']} - "
          f"{len(data['items'])} items via {data['extractionMethod']}")


@skip_if_no_azure_di
@pytest.mark.integration
def test_health_config_reports_azure_set():
    r = client.get("/health/config")
    assert r.status_code == 200
    azure = r.json()["credentials"]["azure_document_intelligence"]
    assert azure["endpoint"] == "SET"
    assert azure["key"] == "SET"
    assert azure["key_length"] > 0
