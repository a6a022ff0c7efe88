"""Pytest configuration and shared fixtures."""

import io
import json
from pathlib import Path
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from bouwdepot.core.unified_llm import UnifiedLLMClient
from bouwdepot.models.validation_models import InputDocumentInfo, ValidationState
from bouwdepot.services.prompts.prompt_builder import PromptBuilder
from bouwdepot.services.prompts.prompt_template_store import PromptTemplateStore

TEMPLATE_NAMES = [
    "LanguageDetection",
    "DocumentTypeVerification",
    "InvoiceHeaderExtraction",
    "InvoicePartiesExtraction",
    "InvoiceLineItemsExtraction",
    "FraudDetection",
    "WithdrawalEligibility",
]

# Replies in pipeline order for a valid bathroom renovation invoice
LANGUAGE_REPLY = {"language": {"name": "Dutch", "code": "nl", "confidence": 97}}
DOCUMENT_TYPE_REPLY = {
    "documentType": "invoice",
    "isInvoice": True,
    "isReceipt": False,
    "isQuotation": False,
    "confidence": 95,
    "explanation": "The document carries a factuurnummer and a payment request",
}
HEADER_REPLY = {
    "invoiceNumber": "F2024-0042",
    "invoiceDate": "2024-03-15",
    "dueDate": "15-04-2024",
    "totalAmount": 6050.0,
    "taxAmount": 1050.0,
    "currency": "EUR",
}
PARTIES_REPLY = {
    "vendorName": "Bouwbedrijf Jansen B.V.",
    "vendorAddress": "Dorpsstraat 1, 3511 AA Utrecht",
    "vendorKvkNumber": "12345678",
    "customerName": "P. de Vries",
}
LINE_ITEMS_REPLY = {
    "lineItems": [
        {"description": "Badkamer renovatie", "quantity": 1, "unitPrice": 4000, "totalPrice": 4000, "vatRate": 21},
        {"description": "Dakisolatie", "quantity": 1, "unitPrice": 1000, "totalPrice": 1000, "vatRate": 21},
    ],
    "paymentTerms": "30 dagen",
    "IBAN": "NL91ABNA0417164300",
    "confidence": 0.9,
}
FRAUD_REPLY = {"possibleFraud": False, "confidence": 0.1, "visualIndicators": []}
ELIGIBILITY_REPLY = {
    "isHomeImprovement": True,
    "eligibleCategories": ["KitchenBathroom", "EnergyEfficiency"],
    "lineItemAssessment": [
        {
            "description": "Badkamer renovatie",
            "isEligible": True,
            "category": "bathroom",
            "confidence": 0.9,
            "reason": "Permanent improvement of the home",
        },
        {
            "description": "Dakisolatie",
            "isEligible": True,
            "category": "insulation",
            "confidence": 0.9,
            "reason": "Energy saving measure",
        },
    ],
    "totalEligibleAmount": 5000,
    "totalIneligibleAmount": 0,
    "overallConfidence": 0.9,
}


def write_template(
    directory: Path,
    file_name: str,
    name: str,
    role: str = "You are a test assistant.",
    task: str = "Do the task.",
    instructions: Optional[List[str]] = None,
) -> Path:
    """Write a template document, as JSON or YAML depending on the suffix."""
    document = {
        "metadata": {"name": name, "version": "1.0", "description": f"{name} test template"},
        "template": {
            "role": role,
            "task": task,
            "instructions": instructions if instructions is not None else ["First instruction.", "Second instruction."],
        },
        "examples": [],
    }
    path = directory / file_name
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".json":
        path.write_text(json.dumps(document), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


@pytest.fixture
def templates_dir(tmp_path) -> Path:
    """Directory holding one template per pipeline step."""
    directory = tmp_path / "templates"
    for name in TEMPLATE_NAMES:
        write_template(directory, f"{name}.yaml", name)
    return directory


@pytest.fixture
def template_store(templates_dir) -> PromptTemplateStore:
    return PromptTemplateStore(templates_dir)


@pytest.fixture
def prompt_builder(template_store) -> PromptBuilder:
    return PromptBuilder(template_store)


@pytest.fixture
def llm_client() -> UnifiedLLMClient:
    """Unified client whose backend is an AsyncMock.

    Set ``llm_client.client.generate.side_effect`` (or ``return_value``)
    to script the raw replies.
    """
    client = UnifiedLLMClient(
        provider="ollama",
        text_model="llama3.2",
        multimodal_model="llava",
        timeout=5,
    )
    backend = MagicMock()
    backend.provider_name = "Ollama"
    backend.generate = AsyncMock()
    client.client = backend
    return client


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Minimal PDF header bytes."""
    return b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n"


@pytest.fixture
def document_stream(sample_pdf_content) -> io.BytesIO:
    return io.BytesIO(sample_pdf_content)


@pytest.fixture
def validation_state(sample_pdf_content) -> ValidationState:
    """Fresh state for an uploaded PDF invoice."""
    return ValidationState(
        input_document=InputDocumentInfo(
            file_name="factuur.pdf",
            content_type="application/pdf",
            file_size_bytes=len(sample_pdf_content),
        )
    )


@pytest.fixture
def valid_invoice_replies() -> List[str]:
    """Raw backend replies for every default step, in execution order."""
    return [
        json.dumps(LANGUAGE_REPLY),
        "```json\n" + json.dumps(DOCUMENT_TYPE_REPLY) + "\n```",
        json.dumps(HEADER_REPLY),
        json.dumps(PARTIES_REPLY),
        json.dumps(LINE_ITEMS_REPLY),
        json.dumps(FRAUD_REPLY),
        json.dumps(ELIGIBILITY_REPLY),
    ]
