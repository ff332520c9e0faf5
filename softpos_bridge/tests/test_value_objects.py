"""
Unit tests for sale value objects.
"""

import pytest

from core.exceptions import InvalidAmountError
from core.value_objects import SaleRequest


class TestSaleRequestFromMessage:
    """Tests for building sale requests from client messages."""

    @pytest.mark.parametrize(
        "message",
        [
            {"amount": 25000},
            {"amount": 25000, "timeout": None},
            {"amount": 25000, "timeout": 0},
        ],
    )
    def test_default_timeout(self, message):
        """Test a missing, null or zero timeout uses the default."""
        request = SaleRequest.from_message(message, default_timeout_ms=120000)
        assert request.timeout_ms == 120000

    def test_explicit_timeout(self):
        """Test a client timeout is kept."""
        request = SaleRequest.from_message({"amount": 25000, "timeout": 5000})
        assert request.to_dict() == {"amount": 25000, "timeout": 5000}
        assert request.timeout_seconds == 5.0

    def test_negative_timeout_rejected(self):
        """Test a negative timeout is refused."""
        with pytest.raises(InvalidAmountError):
            SaleRequest.from_message({"amount": 25000, "timeout": -1})

    @pytest.mark.parametrize("amount", [0, -1, True, "100", 1.5, None])
    def test_invalid_amount_rejected(self, amount):
        """Test amounts that are not positive integers are refused."""
        with pytest.raises(InvalidAmountError):
            SaleRequest.from_message({"amount": amount})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
