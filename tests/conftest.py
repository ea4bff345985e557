"""
Pytest configuration and shared fixtures.

Registers the `integration` marker and --run-integration option, and
provides fake OCR backends so the pipeline can be exercised without Azure.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from invoice_markup.api.deps import get_pipeline
from invoice_markup.api.main import app
from invoice_markup.services.extraction import ExtractionAdapter
from invoice_markup.services.invoice_types import RawExtraction
from invoice_markup.services.pipeline import InvoicePipeline
from invoice_markup.services.pricing_rules import InvoicePricingRules


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real Azure resources"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real Azure resources"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def item_field(description, quantity=None, unit_price=None, amount=None, product_code=None, unit=None):
    """One prebuilt-invoice Items entry in REST shape."""
    value = {"Description": {"type": "string", "valueString": description, "content": description}}
    if quantity is not None:
        value["Quantity"] = {"type": "number", "valueNumber": quantity, "content": str(quantity)}
    if unit_price is not None:
        value["UnitPrice"] = {"type": "currency", "valueCurrency": {"amount": unit_price, "currencyCode": "AUD"}}
    if amount is not None:
        value["Amount"] = {"type": "currency", "valueCurrency": {"amount": amount, "currencyCode": "AUD"}}
    if product_code is not None:
        value["ProductCode"] = {"type": "string", "content": product_code}
    if unit is not None:
        value["Unit"] = {"type": "string", "content": unit}
    return {"type": "object", "valueObject": value}


AZURE_INVOICE_FIELDS = {
    "VendorName": {"type": "string", "content": "Byron Bay Wholefoods Pty Ltd"},
    "VendorAddress": {"type": "address", "content": "12 Jonson St, Byron Bay NSW 2481"},
    "VendorTaxId": {"type": "string", "content": "51 824 753 556"},
    "InvoiceId": {"type": "string", "content": "INV-4521"},
    "InvoiceDate": {"type": "date", "content": "03/02/2024"},
    "DueDate": {"type": "date", "content": "03/03/2024"},
    "PurchaseOrder": {"type": "string", "content": "PO-88"},
    "SubTotal": {"type": "currency", "valueCurrency": {"amount": 60.0}, "content": "$60.00"},
    "TotalTax": {"type": "currency", "valueCurrency": {"amount": 6.0}, "content": "$6.00"},
    "InvoiceTotal": {"type": "currency", "valueCurrency": {"amount": 66.0}, "content": "$66.00"},
    "Items": {
        "type": "array",
        "valueArray": [
            item_field("Organic Rolled Oats 1kg", quantity=4, unit_price=5.0, amount=20.0, product_code="OAT1", unit="bag"),
            item_field("Vitamin C 500mg Tablets", quantity=2, unit_price=20.0, amount=40.0, product_code="VITC"),
        ],
    },
}

INVOICE_TEXT = """Byron Bay Wholefoods Pty Ltd
Tax Invoice #4521
Date: 03/02/2024
Organic Rolled Oats 2 kg 12.50
Vitamin C Tablets $24.00 x 2
Brown Rice Bulk Bag $45.00
Subtotal $105.50
GST $10.55
Total $116.05
"""


class FakeBackend:
    """In-memory OCRBackend. Exceptions given as results are raised."""

    def __init__(
        self,
        name="azure",
        structured=None,
        text="",
        supports_structured=True,
        configured=True,
    ):
        self.name = name
        self.structured = structured
        self.text = text
        self.supports_structured = supports_structured
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def missing_credentials(self):
        flag = "SET" if self.configured else "MISSING"
        return {"endpoint": flag, "key": flag}

    async def extract_structured(self, file_bytes):
        self.calls.append("structured")
        if isinstance(self.structured, Exception):
            raise self.structured
        return self.structured

    async def extract_text(self, file_bytes):
        self.calls.append("text")
        if isinstance(self.text, Exception):
            raise self.text
        return self.text


def azure_fields_extraction(fields=None):
    return RawExtraction(kind="azure_fields", source="azure", fields=fields or AZURE_INVOICE_FIELDS)


def fake_azure_client(results):
    """Mock DocumentIntelligenceClient; `results` maps model id -> AnalyzeResult or exception."""
    client = Mock()

    def begin_analyze_document(model_id, **kwargs):
        outcome = results[model_id]
        if isinstance(outcome, Exception):
            raise outcome
        poller = Mock()
        poller.result.return_value = outcome
        return poller

    client.begin_analyze_document.side_effect = begin_analyze_document
    return client


def analyze_result(fields=None, content="", confidence=0.93):
    documents = []
    if fields is not None:
        doc = Mock(confidence=confidence)
        doc.as_dict.return_value = {"docType": "invoice", "fields": fields}
        documents.append(doc)
    return SimpleNamespace(documents=documents, content=content)


@pytest.fixture
def make_pipeline():
    def _make(*backends, enhancer=None, strict_credentials=False):
        adapter = ExtractionAdapter(
            {backend.name: backend for backend in backends},
            default_provider=backends[0].name if backends else "azure",
            strict_credentials=strict_credentials,
        )
        return InvoicePipeline(adapter, InvoicePricingRules(), enhancer)
    return _make


@pytest.fixture
def client_with():
    """TestClient whose pipeline is the one given."""
    def _client(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()
