"""Typed model replies for each validation step."""

from decimal import Decimal
from typing import List, Optional

from bouwdepot.schemas.contract import CONTRACT_REGISTRY, ResponseContract, prompt_field, register_contract


@register_contract(description="Detected language of a document")
class LanguageAnalysis(ResponseContract):
    """Language of the document."""

    name: str = prompt_field(description="Name of the language in English (e.g. Dutch)", example="Dutch")
    code: Optional[str] = prompt_field(None, description="ISO 639-1 language code", required=False, example="nl")
    confidence: int = prompt_field(0, description="Confidence score (0-100)", required=True, example=95)
    explanation: Optional[str] = prompt_field(None, description="Short explanation of the decision", required=False)


@register_contract(description="Response from language detection")
class LanguageDetectionResponse(ResponseContract):
    """Language detection result."""

    language: LanguageAnalysis = prompt_field(description="Primary language of the document")


@register_contract(description="Response from document type verification")
class DocumentTypeVerificationResponse(ResponseContract):
    """Document type verification result."""

    document_type: str = prompt_field(
        description="Detected document type (invoice, receipt, quotation or other)",
        example="invoice",
    )
    is_invoice: bool = prompt_field(False, description="Whether the document is an invoice", required=True)
    is_receipt: bool = prompt_field(False, description="Whether the document is a receipt", required=True)
    is_quotation: bool = prompt_field(False, description="Whether the document is a quotation", required=True)
    confidence: int = prompt_field(0, description="Confidence score (0-100)", required=True, example=90)
    explanation: str = prompt_field("", description="Explanation of the decision", required=True)


@register_contract(description="Response from invoice header extraction")
class InvoiceHeaderResponse(ResponseContract):
    """Invoice header fields."""

    invoice_number: Optional[str] = prompt_field(None, description="Invoice number", required=True, example="INV-2024-001")
    invoice_date: Optional[str] = prompt_field(
        None, description="Invoice date (YYYY-MM-DD)", required=True, example="2024-03-15"
    )
    due_date: Optional[str] = prompt_field(None, description="Due date (YYYY-MM-DD)", required=False, example="2024-04-14")
    total_amount: Decimal = prompt_field(
        Decimal("0"), description="Total amount including VAT", required=True, example=1210.0
    )
    tax_amount: Decimal = prompt_field(Decimal("0"), description="VAT amount", required=True, example=210.0)
    currency: str = prompt_field("EUR", description="Currency code (e.g. EUR)", required=True, example="EUR")


@register_contract(description="Response from invoice parties extraction")
class InvoicePartiesResponse(ResponseContract):
    """Vendor and customer details."""

    vendor_name: Optional[str] = prompt_field(None, description="Name of the vendor", required=True, example="Bouwbedrijf Jansen B.V.")
    vendor_address: Optional[str] = prompt_field(None, description="Address of the vendor", required=True)
    vendor_contact: Optional[str] = prompt_field(None, description="Vendor contact details", required=False)
    vendor_kvk_number: Optional[str] = prompt_field(None, description="Chamber of Commerce (KvK) number", required=False)
    vendor_btw_number: Optional[str] = prompt_field(None, description="VAT (BTW) identification number", required=False)
    customer_name: Optional[str] = prompt_field(None, description="Name of the customer", required=True)
    customer_address: Optional[str] = prompt_field(None, description="Address of the customer", required=False)


@register_contract(description="Line item in an invoice")
class LineItemResponse(ResponseContract):
    """One invoice line."""

    description: str = prompt_field(description="Description of the item")
    quantity: int = prompt_field(1, description="Quantity of the item", required=True)
    unit_price: Decimal = prompt_field(Decimal("0"), description="Price per unit", required=True)
    total_price: Decimal = prompt_field(Decimal("0"), description="Total price for this line item", required=True)
    vat_rate: Decimal = prompt_field(Decimal("0"), description="VAT/tax rate applied to this item", required=True)


@register_contract(description="Response from invoice line items extraction")
class InvoiceLineItemsResponse(ResponseContract):
    """Line items and payment details."""

    line_items: List[LineItemResponse] = prompt_field(
        description="Line items in the invoice", required=True, default_factory=list
    )
    payment_terms: Optional[str] = prompt_field(None, description="Payment terms (e.g., Net 30 days)", required=False)
    payment_method: Optional[str] = prompt_field(
        None, description="Payment method (e.g., Bank transfer, Credit card)", required=False
    )
    payment_reference: Optional[str] = prompt_field(None, description="Payment reference number", required=False)
    iban: Optional[str] = prompt_field(
        None, description="IBAN of the beneficiary account", required=False, alias="IBAN"
    )
    notes: Optional[str] = prompt_field(None, description="Additional notes or important information", required=False)
    confidence: float = prompt_field(0.0, description="Confidence score (0.0-1.0)", required=True)


@register_contract(description="Response from fraud detection")
class FraudDetectionResponse(ResponseContract):
    """Visual fraud assessment."""

    possible_fraud: bool = prompt_field(description="Whether the document shows signs of tampering or fraud")
    confidence: float = prompt_field(0.0, description="Confidence score (0.0-1.0)", required=True, example=0.9)
    visual_evidence: Optional[str] = prompt_field(None, description="Description of the visual evidence", required=False)
    visual_indicators: List[str] = prompt_field(
        description="Specific indicators found", required=False, default_factory=list
    )


@register_contract(description="Assessment of a single line item")
class LineItemAssessment(ResponseContract):
    """Eligibility of one invoice line."""

    description: str = prompt_field(description="Description of the line item")
    is_eligible: bool = prompt_field(False, description="Whether the item is eligible for the construction fund", required=True)
    category: Optional[str] = prompt_field(None, description="Construction category of the item", required=True)
    confidence: float = prompt_field(0.0, description="Confidence score (0.0-1.0)", required=True)
    reason: Optional[str] = prompt_field(None, description="Reason for the decision", required=True)


@register_contract(description="Response from withdrawal eligibility assessment")
class HomeImprovementResponse(ResponseContract):
    """Construction-fund eligibility of the invoice."""

    is_home_improvement: bool = prompt_field(description="Whether the invoice concerns home improvement")
    eligible_categories: List[str] = prompt_field(
        description="Eligible construction categories found", required=True, default_factory=list
    )
    line_item_assessment: List[LineItemAssessment] = prompt_field(
        description="Per line item assessment", required=True, default_factory=list
    )
    total_eligible_amount: Decimal = prompt_field(Decimal("0"), description="Total eligible amount", required=True)
    total_ineligible_amount: Decimal = prompt_field(Decimal("0"), description="Total ineligible amount", required=True)
    overall_confidence: float = prompt_field(0.0, description="Overall confidence score (0.0-1.0)", required=True)


CONTRACT_REGISTRY.register_example_override(
    LineItemResponse,
    {
        "description": "Installatie badkamer inclusief tegelwerk",
        "quantity": 1,
        "unitPrice": 4500.0,
        "totalPrice": 4500.0,
        "vatRate": 21.0,
    },
)

CONTRACT_REGISTRY.register_example_override(
    InvoiceLineItemsResponse,
    {
        "lineItems": [
            {
                "description": "Installatie badkamer inclusief tegelwerk",
                "quantity": 1,
                "unitPrice": 4500.0,
                "totalPrice": 4500.0,
                "vatRate": 21.0,
            },
            {
                "description": "Isolatieplaten dak 120mm",
                "quantity": 40,
                "unitPrice": 25.0,
                "totalPrice": 1000.0,
                "vatRate": 21.0,
            },
        ],
        "paymentTerms": "Net 30 days",
        "paymentMethod": "Bank transfer",
        "paymentReference": "INV-2024-001",
        "IBAN": "NL91ABNA0417164300",
        "confidence": 0.95,
    },
)
