from shared.models.extracted_document import ExtractedDocument, NumericField


class TestExtractedDocument:

    def test_numeric_field_falls_back_to_text(self):
        assert NumericField(numeric_value=12.5, text="99").value == 12.5
        assert NumericField(text="USD 1,200.40").value == 1200.4
        assert NumericField().value is None

    def test_payloads_from_full_extraction(self):
        document = ExtractedDocument.model_validate({
            "bill_to": {
                "company_name": {"text": " Globex Corporation "},
                "contact": {"phone": {"text": "555-0101"}, "email": {"text": "ar@globex.example"}},
                "unexpected": "ignored",
            },
            "invoice_details": {
                "invoice_number": {"text": "GX-77"},
                "invoice_date": {"text": "2026-09-30"},
                "due_date": {"text": "2026-10-30T00:00:00Z"},
                "financial_data": {
                    "total_amount": {"numeric_value": 250},
                    "payment_terms": {
                        "terms_text": "Payment due in 30 days",
                        "late_fee": {"found": True, "percentage": 1.5, "period": "monthly"},
                        "early_pay_discount": {"found": False, "percentage": 3},
                    },
                    "line_items": [{"description": {"text": "Widgets"}, "quantity": 10,
                                    "amount": {"numeric_value": 250}}],
                },
            },
        })

        assert document.vendor_payload() == {
            "name": "Globex Corporation", "email": "ar@globex.example", "phone": "555-0101",
        }
        assert document.invoice_number == "GX-77"
        assert document.invoice_payload() == {
            "invoiceNumber": "GX-77",
            "date": "2026-09-30T00:00:00+00:00",
            "dueDate": "2026-10-30T00:00:00+00:00",
            "subtotal": 250,
            "totalAmount": 250,
            "paymentTerms": "Payment due in 30 days",
            "earlyPayDiscount": 0,
            "lateFee": 1.5,
        }

    def test_empty_extraction(self):
        document = ExtractedDocument.model_validate({})

        assert document.vendor_payload() == {}
        assert document.invoice_number is None
        assert document.invoice_payload() == {"earlyPayDiscount": 0, "lateFee": 0}

    def test_unparseable_dates_are_dropped(self):
        document = ExtractedDocument.model_validate({
            "invoice_details": {"invoice_number": {"text": "X1"}, "due_date": {"text": "end of month"}},
        })

        assert "dueDate" not in document.invoice_payload()
