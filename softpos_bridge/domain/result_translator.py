"""
Result Translator - Converts raw settlement payloads into Transactions.

The external payment application reports its outcome as a loosely
structured JSON document. This module reads it into a canonical
``Transaction`` and never lets a malformed payload escape as an error.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from configs import SUCCESS_RESULT_CODE
from core.value_objects import Transaction, TransactionStatus
from loggers import terminal_logger as logger


RawPayload = Union[str, bytes, Mapping[str, Any]]


def _text(document: Mapping[str, Any], key: str, default: str = "") -> str:
    """Read an optional field as a string."""
    value = document.get(key)
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _required(document: Mapping[str, Any], key: str) -> str:
    """Read a field that the success contract guarantees."""
    value = document.get(key)
    if value is None:
        raise KeyError(f"Settlement payload is missing '{key}'")
    return value if isinstance(value, str) else str(value)


def _join_time(date: str, time: str) -> str:
    return f"{date} {time}".strip()


class ResultTranslator:
    """
    Stateless translator for settlement payloads.

    Translating the same payload twice always yields equal Transactions.
    """

    def translate(self, payload: RawPayload) -> Optional[Transaction]:
        """
        Translate a raw payload.

        Args:
            payload: JSON text or an already decoded mapping.

        Returns:
            Transaction, or None if the payload cannot be interpreted.
        """
        try:
            document = self._decode(payload)
            if _text(document, "resultCode") == SUCCESS_RESULT_CODE:
                return self._settled(document)
            return self._failed(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unable to translate settlement payload: {e}")
            return None

    @staticmethod
    def _decode(payload: RawPayload) -> Mapping[str, Any]:
        if isinstance(payload, Mapping):
            return payload
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        if not isinstance(payload, str):
            raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

        document = json.loads(payload)
        if not isinstance(document, Mapping):
            raise TypeError("Settlement payload is not a JSON object")
        return document

    @staticmethod
    def _settled(document: Mapping[str, Any]) -> Transaction:
        return Transaction(
            status=TransactionStatus.SETTLED,
            amount=_text(document, "transactionAmount", "0"),
            response_code=_required(document, "resultCode"),
            reference_no=_text(document, "referenceID"),
            trace=_text(document, "retrievalReferencedNumber"),
            terminal_no=_required(document, "terminalID"),
            time=_join_time(
                _required(document, "dateOfTransaction"),
                _required(document, "timeOfTransaction"),
            ),
            mask_pan=_required(document, "maskedCardNumber"),
        )

    @staticmethod
    def _failed(document: Mapping[str, Any]) -> Transaction:
        return Transaction(
            status=TransactionStatus.SETTLE_FAILED,
            amount=_text(document, "transactionAmount", "0"),
            response_code=_text(document, "resultCode"),
            reference_no=_text(document, "referenceID"),
            trace=_text(document, "retrievalReferencedNumber"),
            terminal_no=_text(document, "terminalID"),
            settle_fail_reason=_text(document, "resultDescription"),
            time=_join_time(
                _text(document, "dateOfTransaction"),
                _text(document, "timeOfTransaction"),
            ),
            mask_pan=_text(document, "maskedCardNumber"),
        )


def translate_result(payload: RawPayload) -> Optional[Transaction]:
    """Translate a payload with a default translator."""
    return ResultTranslator().translate(payload)
