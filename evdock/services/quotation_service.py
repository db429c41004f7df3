"""Quotation persistence for full-payment settlements."""
import logging
from typing import List, Optional

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import NotFound
from evdock.core.identifiers import utcnow
from evdock.schemas.quotation import Quotation, QuotationDraft
from evdock.services.collaborators import QuotationCreator
from evdock.services.record_store import RecordCollection, RecordStore

logger = logging.getLogger(__name__)


class QuotationService(QuotationCreator):
    """Stores quotations, numbered Q0001, Q0002, ..."""

    ENTITY = "quotation"

    def __init__(self, store: RecordStore, config: Settings = None):
        self.config = config or default_settings
        self.records = RecordCollection(store, self.ENTITY, Quotation, self.config.STORE_NAMESPACE)

    async def _next_quotation_id(self) -> str:
        number = await self.records.next_sequence("number")
        return f"Q{number:04d}"

    async def create_quotation(self, draft: QuotationDraft) -> str:
        quotation_id, existing = await self.records.claim(
            "deposit", draft.deposit_id, self._next_quotation_id
        )
        if existing is not None:
            logger.info(f"Quotation {quotation_id} already exists for deposit {draft.deposit_id}")
            return quotation_id

        now = utcnow()
        quotation = Quotation(
            id=quotation_id,
            created_at=now,
            last_modified=now,
            **draft.model_dump(),
        )
        await self.records.put(quotation.id, quotation)
        logger.info(
            f"Quotation {quotation.id} created for deposit {draft.deposit_id}: "
            f"{quotation.total_amount}"
        )
        return quotation.id

    async def get_quotation(self, quotation_id: str) -> Quotation:
        quotation = await self.records.get(quotation_id)
        if quotation is None:
            raise NotFound("Quotation", quotation_id)
        return quotation

    async def find_quotation_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        record = await self.records.lookup_record("deposit", deposit_id)
        return record.id if record else None

    async def list_quotations(self) -> List[Quotation]:
        return await self.records.all()
