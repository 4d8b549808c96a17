"""Custom exceptions for the VendorSync service."""


class VendorSyncException(Exception):
    """Base exception for all VendorSync errors."""
    pass


class ApiRequestException(VendorSyncException):
    """Raised when a call to the remote VendorSync API does not yield a usable response.

    ``status`` is None when no HTTP response was received.
    """

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class DataServiceNotInitializedException(VendorSyncException):
    """Raised when dashboard data is requested before the data service is loaded."""
    pass


class DataServiceInitializationException(VendorSyncException):
    """Raised when vendors or invoices cannot be loaded on first use."""
    pass


class InvoiceNotFoundException(VendorSyncException):
    """Raised when an invoice cannot be found in the loaded invoice list."""
    pass


class PaymentUpdateException(VendorSyncException):
    """Raised when a payment mutation fails and the local state was rolled back."""
    pass


class DuplicateInvoiceException(VendorSyncException):
    """Raised when an uploaded invoice number already exists and the user declines the update."""
    pass


class DocumentExtractionException(VendorSyncException):
    """Raised when an uploaded document cannot be turned into vendor and invoice data."""
    pass


class StorageException(VendorSyncException):
    """Raised when the local key/value store cannot be read or written."""
    pass
