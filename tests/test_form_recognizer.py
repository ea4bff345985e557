"""
Tests for the Azure Document Intelligence backend and the AI parser backend,
with the SDK client and LLM mocked.
"""

import asyncio
import json

import httpx
import pytest
import respx
from azure.core.exceptions import HttpResponseError

from invoice_markup.services.ai_parser import AIInvoiceParserBackend
from invoice_markup.services.extraction import ExtractionAdapter
from invoice_markup.services.form_recognizer import AzureDocumentIntelligenceBackend
from invoice_markup.services.llm import LLMClient
from invoice_markup.services.text_parser import has_readable_text
from invoice_markup.models.invoice import UploadedFile
from conftest import AZURE_INVOICE_FIELDS, INVOICE_TEXT, FakeBackend, analyze_result, fake_azure_client

LLM_URL = "https://llm.example.com/openai/deployments/gpt-4o-mini/chat/completions"


def run(coro):
    return asyncio.run(coro)


def azure_backend(results, structured=True):
    return AzureDocumentIntelligenceBackend(
        "https://example.cognitiveservices.azure.com/", "key",
        structured=structured, client=fake_azure_client(results),
    )


class TestAzureBackend:

    def test_structured_fields_returned(self):
        backend = azure_backend({"prebuilt-invoice": analyze_result(AZURE_INVOICE_FIELDS, content="INVOICE text")})
        raw = run(backend.extract_structured(b"%PDF"))

        assert raw.kind == "azure_fields"
        assert raw.source == "azure"
        assert raw.fields == AZURE_INVOICE_FIELDS
        assert raw.text == "INVOICE text"
        assert raw.confidence == 0.93

    def test_locale_hint_and_binary_body(self):
        backend = azure_backend({"prebuilt-invoice": analyze_result(AZURE_INVOICE_FIELDS)})
        run(backend.extract_structured(b"%PDF"))

        args, kwargs = backend.client.begin_analyze_document.call_args
        assert args == ("prebuilt-invoice",)
        assert kwargs["locale"] == "en-AU"
        assert kwargs["body"] == b"%PDF"
        assert kwargs["content_type"] == "application/octet-stream"

    def test_no_documents_returns_none(self):
        backend = azure_backend({"prebuilt-invoice": analyze_result(None, content="some text")})
        assert run(backend.extract_structured(b"%PDF")) is None

    def test_extract_text_uses_read_model(self):
        backend = azure_backend({"prebuilt-read": analyze_result(None, content=INVOICE_TEXT)})
        assert run(backend.extract_text(b"%PDF")) == INVOICE_TEXT
        args, _ = backend.client.begin_analyze_document.call_args
        assert args == ("prebuilt-read",)

    def test_names_and_capabilities(self):
        assert azure_backend({}).name == "azure"
        read_only = azure_backend({}, structured=False)
        assert read_only.name == "azure-read"
        assert read_only.supports_structured is False

    def test_credentials(self):
        backend = AzureDocumentIntelligenceBackend(None, "key")
        assert backend.is_configured() is False
        assert backend.missing_credentials() == {"endpoint": "MISSING", "key": "SET"}

    def test_invoice_model_failure_falls_back_through_adapter(self):
        backend = azure_backend({
            "prebuilt-invoice": HttpResponseError(message="InvalidRequest"),
            "prebuilt-read": analyze_result(None, content=INVOICE_TEXT),
        })
        upload = UploadedFile(filename="scan.jpg", content_type="image/jpeg", data=b"jpeg")
        invoice = run(ExtractionAdapter({"azure": backend}).extract(upload))

        assert invoice.extraction_method == "Text Parsing"
        assert len(invoice.line_items) == 3


class TestAIParserBackend:

    def _llm(self):
        return LLMClient("https://llm.example.com", "test-key", "gpt-4o-mini")

    @respx.mock
    def test_llm_payload_returned(self):
        payload = {"supplier": {"name": "Byron Bay Wholefoods"}, "line_items": [{"description": "Oats", "unit_cost": 6.25}]}
        respx.post(LLM_URL).mock(return_value=httpx.Response(
            200, json={"choices": [{"message": {"content": json.dumps(payload)}}]}
        ))
        backend = AIInvoiceParserBackend(self._llm(), FakeBackend(name="azure-read", text=INVOICE_TEXT))

        raw = run(backend.extract_structured(b"%PDF"))
        assert raw.kind == "ai_json"
        assert raw.payload == payload
        assert raw.text == INVOICE_TEXT

    def test_too_little_text_returns_none(self):
        backend = AIInvoiceParserBackend(self._llm(), FakeBackend(name="azure-read", text="hi"))
        assert run(backend.extract_structured(b"%PDF")) is None

    @respx.mock
    def test_llm_failure_falls_back_to_text_parsing(self):
        respx.post(LLM_URL).mock(side_effect=httpx.ConnectError("refused"))
        text_backend = FakeBackend(name="azure-read", text=INVOICE_TEXT)
        backend = AIInvoiceParserBackend(self._llm(), text_backend)
        upload = UploadedFile(filename="invoice.pdf", data=b"%PDF")

        invoice = run(ExtractionAdapter({"openai": backend}).extract(upload, "openai"))
        assert invoice.extraction_method == "Text Parsing"
        assert len(invoice.line_items) == 3
        # OCR runs once; its text is reused for parsing
        assert text_backend.calls == ["text"]

    @respx.mock
    def test_llm_failure_returns_ocr_text(self):
        respx.post(LLM_URL).mock(return_value=httpx.Response(500))
        backend = AIInvoiceParserBackend(self._llm(), FakeBackend(name="azure-read", text=INVOICE_TEXT))

        raw = run(backend.extract_structured(b"%PDF"))
        assert raw.kind == "text"
        assert raw.text == INVOICE_TEXT

    @pytest.mark.parametrize("length,sent", [(20, False), (21, True)])
    def test_text_length_threshold_matches_text_path(self, length, sent):
        text = "x" * length
        with respx.mock:
            route = respx.post(LLM_URL).mock(return_value=httpx.Response(
                200, json={"choices": [{"message": {"content": "{}"}}]}
            ))
            backend = AIInvoiceParserBackend(self._llm(), FakeBackend(name="azure-read", text=text))
            raw = run(backend.extract_structured(b"%PDF"))

        assert route.called is sent
        assert (raw is not None) is sent
        assert has_readable_text(text) is sent

    def test_not_configured_without_llm(self):
        backend = AIInvoiceParserBackend(None, FakeBackend(name="azure-read"))
        assert backend.is_configured() is False
        assert backend.missing_credentials()["llm"] == "MISSING"
