"""
Vendor and invoice matching used when uploaded documents are turned into
records. This is the only place vendor identity is decided by name.

Matching is exact on a normalized key: lower-cased with every
non-alphanumeric character removed, so "Acme, Inc." and "acme inc" are the
same vendor. There is no fuzzy or phonetic matching.
"""

import re
from typing import Iterable, Optional

from shared.models.invoice import ApiInvoice
from shared.models.vendor import ApiVendor

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def normalize_key(value: Optional[str]) -> str:
    if not value:
        return ""
    return _NON_ALPHANUMERIC.sub("", str(value).lower())


def is_same_vendor(candidate: dict | ApiVendor, existing: dict | ApiVendor) -> bool:
    """True when the normalized names or the normalized emails match."""
    candidate_name, candidate_email = _name_and_email(candidate)
    existing_name, existing_email = _name_and_email(existing)

    if candidate_name and candidate_name == existing_name:
        return True
    if candidate_email and candidate_email == existing_email:
        return True
    return False


def _name_and_email(vendor: dict | ApiVendor) -> tuple[str, str]:
    if isinstance(vendor, ApiVendor):
        return normalize_key(vendor.name), normalize_key(vendor.email)
    return normalize_key(vendor.get("name")), normalize_key(vendor.get("email"))


def find_matching_vendor(candidate: dict | ApiVendor, vendors: Iterable[ApiVendor]) -> Optional[ApiVendor]:
    for vendor in vendors:
        if is_same_vendor(candidate, vendor):
            return vendor
    return None


def find_existing_invoice(invoice_number: Optional[str], invoices: Iterable[ApiInvoice]) -> Optional[ApiInvoice]:
    key = normalize_key(invoice_number)
    if not key:
        return None
    for invoice in invoices:
        if normalize_key(invoice.invoice_number) == key:
            return invoice
    return None
