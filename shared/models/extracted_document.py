"""
Structure returned by ``POST /vendor/invoice/upload`` (OCR extraction).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from shared.utils.convert import parse_datetime, to_optional_number


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextField(_Lenient):
    text: Optional[str] = None


class NumericField(_Lenient):
    text: Optional[str] = None
    numeric_value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        """Numeric value, falling back to parsing the raw text."""
        if self.numeric_value is not None:
            return self.numeric_value
        return to_optional_number(self.text) if self.text else None


class Contact(_Lenient):
    phone: Optional[TextField] = None
    email: Optional[TextField] = None


class BillTo(_Lenient):
    company_name: Optional[TextField] = None
    address: Optional[TextField] = None
    contact: Optional[Contact] = None


class LineItem(_Lenient):
    description: Optional[TextField] = None
    quantity: Optional[float] = None
    amount: Optional[NumericField] = None


class EarlyPayDiscount(_Lenient):
    found: bool = False
    text: Optional[str] = None
    percentage: Optional[float] = None
    days: Optional[int] = None


class LateFee(_Lenient):
    found: bool = False
    percentage: Optional[float] = None
    period: Optional[str] = None


class PaymentTerms(_Lenient):
    terms_text: Optional[str] = None
    standardized: Optional[str] = None
    early_pay_discount: Optional[EarlyPayDiscount] = None
    late_fee: Optional[LateFee] = None


class FinancialData(_Lenient):
    total_amount: Optional[NumericField] = None
    subtotal: Optional[NumericField] = None
    tax: Optional[NumericField] = None
    line_items: list[LineItem] = []
    payment_terms: Optional[PaymentTerms] = None


class InvoiceDetails(_Lenient):
    invoice_number: Optional[TextField] = None
    invoice_date: Optional[TextField] = None
    due_date: Optional[TextField] = None
    financial_data: Optional[FinancialData] = None


def _text(field: Optional[TextField]) -> Optional[str]:
    if field is None or field.text is None:
        return None
    value = field.text.strip()
    return value or None


def _iso(field: Optional[TextField]) -> Optional[str]:
    parsed = parse_datetime(_text(field))
    return parsed.isoformat() if parsed else None


class ExtractedDocument(_Lenient):
    """OCR result for one uploaded invoice document."""
    bill_to: Optional[BillTo] = None
    invoice_details: Optional[InvoiceDetails] = None

    def vendor_payload(self) -> dict:
        """Vendor fields for ``POST /vendor``."""
        bill_to = self.bill_to or BillTo()
        contact = bill_to.contact or Contact()
        payload = {
            "name": _text(bill_to.company_name),
            "address": _text(bill_to.address),
            "email": _text(contact.email),
            "phone": _text(contact.phone),
        }
        return {key: value for key, value in payload.items() if value is not None}

    @property
    def invoice_number(self) -> Optional[str]:
        details = self.invoice_details or InvoiceDetails()
        return _text(details.invoice_number)

    def invoice_payload(self) -> dict:
        """Invoice fields for ``POST /vendor/:vendorId/invoice``."""
        details = self.invoice_details or InvoiceDetails()
        financial = details.financial_data or FinancialData()
        terms = financial.payment_terms or PaymentTerms()
        discount = terms.early_pay_discount or EarlyPayDiscount()
        late_fee = terms.late_fee or LateFee()

        total = financial.total_amount.value if financial.total_amount else None
        subtotal = financial.subtotal.value if financial.subtotal else None

        payload = {
            "invoiceNumber": self.invoice_number,
            "date": _iso(details.invoice_date),
            "dueDate": _iso(details.due_date),
            "subtotal": subtotal if subtotal is not None else total,
            "totalAmount": total,
            "paymentTerms": terms.standardized or terms.terms_text,
            "earlyPayDiscount": discount.percentage if discount.found and discount.percentage else 0,
            "lateFee": late_fee.percentage if late_fee.found and late_fee.percentage else 0,
        }
        return {key: value for key, value in payload.items() if value is not None}
