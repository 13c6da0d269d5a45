"""Field set of one document: party partitioning, signed state, authorisation.

Fields change in exactly two ways: they are created by the authoring step and
they receive their committed mark once. Everything here enforces that.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, Iterator, List

from ..exceptions.errors import (
    FieldAlreadySignedError, InvalidFieldReferenceError, UnauthorizedFieldError,
)
from ..models.signature_enums import SigningParty
from ..models.signature_field import CommittedMark, SignatureField

logger = logging.getLogger(__name__)


def is_signed(field: SignatureField) -> bool:
    return field.committed_mark is not None


def is_fully_signed(fields: Iterable[SignatureField]) -> bool:
    return all(is_signed(f) for f in fields)


def fields_for(fields: Iterable[SignatureField], party: SigningParty | str) -> List[SignatureField]:
    party = SigningParty.parse(party)
    return [f for f in fields if f.assigned_party == party]


def ensure_can_sign(field: SignatureField, party: SigningParty | str) -> None:
    """Raise unless ``party`` may attach a mark to ``field`` right now."""
    party = SigningParty.parse(party)
    if field.assigned_party != party:
        logger.warning("Rejected mark on field %s: assigned to %s, acting %s",
                       field.id, field.assigned_party.value, party.value)
        raise UnauthorizedFieldError(field.id, field.assigned_party.value, party.value)
    if field.committed_mark is not None:
        raise FieldAlreadySignedError(field.id)


class FieldModel:
    """Ordered, id-indexed collection of a document's signature fields."""

    def __init__(self, fields: Iterable[SignatureField]) -> None:
        self._fields: Dict[str, SignatureField] = {}
        for f in fields:
            if f.id in self._fields:
                raise InvalidFieldReferenceError(f"Duplicate field id '{f.id}'.")
            self._fields[f.id] = f

    def __iter__(self) -> Iterator[SignatureField]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def get(self, field_id: str) -> SignatureField:
        try:
            return self._fields[field_id]
        except KeyError:
            raise InvalidFieldReferenceError(f"Unknown field id '{field_id}'.") from None

    def fields_for(self, party: SigningParty | str) -> List[SignatureField]:
        return fields_for(self._fields.values(), party)

    def fields_not_for(self, party: SigningParty | str) -> List[SignatureField]:
        party = SigningParty.parse(party)
        return [f for f in self._fields.values() if f.assigned_party != party]

    def is_fully_signed(self, party: SigningParty | str) -> bool:
        """All fields of ``party`` committed."""
        return is_fully_signed(self.fields_for(party))

    @property
    def is_fully_executed(self) -> bool:
        """All fields of all parties committed."""
        return is_fully_signed(self._fields.values())

    def validate_pages(self, page_count: int) -> None:
        for f in self._fields.values():
            if not 1 <= f.page_number <= page_count:
                raise InvalidFieldReferenceError(
                    f"Field '{f.id}' is on page {f.page_number}, document has {page_count} page(s)."
                )

    def commit(self, field_id: str, mark: CommittedMark, party: SigningParty | str) -> SignatureField:
        """Attach the committed mark (write-once) on behalf of ``party``."""
        field = self.get(field_id)
        ensure_can_sign(field, party)
        committed = field.with_committed_mark(mark)
        self._fields[field_id] = committed
        return committed
