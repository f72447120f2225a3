"""Turning confirmed payments into access grants.

The on-chain transaction itself is executed by an external gateway. The core
only records a grant after an explicit confirmation signal; no delay, however
long, counts as confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Protocol

from sqlalchemy.orm import Session

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.models import AccessGrant
from ventbuddy_stage.schemas.common import GrantType
from ventbuddy_stage.schemas.content import GatedContent

from .access_log import AccessLogStore
from .errors import PaymentFailed, PaymentUnconfirmed
from .identity import IdentityResolver, ViewerContext, normalize_address
from .visibility import load_content

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """Raised by gateways when a transaction is rejected before inclusion."""


@dataclass(frozen=True)
class PaymentReceipt:
    """Confirmation signal for a submitted transaction.

    A successful receipt names the wallet that sent the transaction and the
    payment call it made, so a grant can only be claimed by the payer and
    only for the content item that was paid for.
    """

    tx_hash: str
    status: Literal["success", "reverted"]
    sender: str | None = None
    content_id: int | None = None
    grant_type: GrantType | None = None
    value: Decimal | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


class ConfirmationSource(Protocol):
    """Anything able to report the outcome of a submitted transaction."""

    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> PaymentReceipt | None:
        """Return the receipt, or None if no signal arrived within ``timeout``."""
        ...


class PaymentGateway(ConfirmationSource, Protocol):
    """External executor of tips and unlocks."""

    async def submit_unlock(self, content_id: int, amount: Decimal) -> str:
        """Submit an unlock payment and return its transaction hash."""
        ...

    async def submit_tip(self, content_id: int, amount: Decimal) -> str:
        """Submit a tip and return its transaction hash."""
        ...


class PaymentService:
    """Coordinates payment submission, confirmation, and grant recording."""

    def __init__(self, db: Session, *, timeout: float | None = None) -> None:
        self.db = db
        self.timeout = (
            settings.payment_confirmation_timeout_seconds if timeout is None else timeout
        )

    def _validate(self, content_id: int, grant_type: GrantType, amount: Decimal) -> None:
        if amount <= 0:
            raise PaymentFailed("Amount must be greater than 0")
        content = load_content(self.db, content_id)
        if grant_type is GrantType.UNLOCK:
            if not isinstance(content, GatedContent):
                raise PaymentFailed("Public content does not need to be unlocked")
            if amount < content.min_price:
                raise PaymentFailed(f"Minimum unlock amount is {content.min_price} ETH")
        elif amount < settings.min_tip_amount:
            raise PaymentFailed(f"Minimum tip amount is {settings.min_tip_amount} ETH")

    async def _await_receipt(self, source: ConfirmationSource, tx_hash: str) -> PaymentReceipt:
        try:
            receipt = await source.wait_for_confirmation(tx_hash, self.timeout)
        except asyncio.TimeoutError as err:
            raise PaymentUnconfirmed(
                "Transaction confirmation timed out. Please check the transaction on a block explorer."
            ) from err
        except GatewayError as err:
            raise PaymentUnconfirmed(f"Failed to confirm transaction: {err}") from err
        if receipt is None:
            raise PaymentUnconfirmed(
                "Transaction confirmation timed out. Please check the transaction on a block explorer."
            )
        if not receipt.succeeded:
            raise PaymentFailed(receipt.error or "Transaction was reverted by the smart contract.")
        return receipt

    @staticmethod
    def _check_receipt(
        receipt: PaymentReceipt,
        ctx: ViewerContext,
        content_id: int,
        grant_type: GrantType,
        amount: Decimal,
    ) -> None:
        """Ensure the confirmed transaction is the viewer's payment for this item."""
        payer = normalize_address(ctx.wallet_address or "")
        if not receipt.sender or normalize_address(receipt.sender) != payer:
            raise PaymentFailed("Transaction was not sent by the connected wallet")
        if receipt.content_id != content_id or receipt.grant_type != grant_type:
            raise PaymentFailed(
                f"Transaction did not pay for {grant_type.value} of content {content_id}"
            )
        if receipt.value is not None and receipt.value < amount:
            raise PaymentFailed(
                f"Transaction transferred {receipt.value} ETH, expected at least {amount} ETH"
            )

    async def _pay(
        self,
        gateway: PaymentGateway,
        ctx: ViewerContext,
        content_id: int,
        grant_type: GrantType,
        amount: Decimal,
    ) -> AccessGrant:
        identity = IdentityResolver(self.db).require(ctx)
        self._validate(content_id, grant_type, amount)

        try:
            if grant_type is GrantType.UNLOCK:
                tx_hash = await gateway.submit_unlock(content_id, amount)
            else:
                tx_hash = await gateway.submit_tip(content_id, amount)
        except GatewayError as err:
            logger.warning("%s submission for content %s rejected: %s", grant_type, content_id, err)
            raise PaymentFailed(str(err)) from err

        logger.info("Submitted %s for content %s as %s", grant_type, content_id, tx_hash)
        receipt = await self._await_receipt(gateway, tx_hash)
        self._check_receipt(receipt, ctx, content_id, grant_type, amount)
        return AccessLogStore.record(
            self.db, content_id, identity, grant_type, amount, tx_hash=tx_hash
        )

    async def unlock(
        self,
        gateway: PaymentGateway,
        ctx: ViewerContext,
        content_id: int,
        amount: Decimal,
    ) -> AccessGrant:
        """Pay to unlock gated content and record the grant once confirmed.

        Raises:
            IdentityRequired: If the wallet has no registered session.
            PaymentFailed: If the amount is insufficient or the payment is rejected.
            PaymentUnconfirmed: If no confirmation arrives in time.
        """
        return await self._pay(gateway, ctx, content_id, GrantType.UNLOCK, amount)

    async def tip(
        self,
        gateway: PaymentGateway,
        ctx: ViewerContext,
        content_id: int,
        amount: Decimal,
    ) -> AccessGrant:
        """Tip the author of a content item and record the grant once confirmed."""
        return await self._pay(gateway, ctx, content_id, GrantType.TIP, amount)

    async def confirm_submitted(
        self,
        source: ConfirmationSource,
        ctx: ViewerContext,
        content_id: int,
        grant_type: GrantType,
        amount: Decimal,
        tx_hash: str,
    ) -> AccessGrant:
        """Record a grant for a transaction the viewer's wallet submitted itself.

        Idempotent on ``tx_hash``: confirming the same transaction twice
        returns the grant recorded the first time.

        Raises:
            IdentityRequired: If the wallet has no registered session.
            PaymentFailed: If the transaction failed, was sent by another
                wallet, or paid for a different item or grant type.
            PaymentUnconfirmed: If no confirmation arrives in time.
            GrantConflict: If the transaction is already recorded for another grant.
        """
        grant_type = GrantType(grant_type)
        identity = IdentityResolver(self.db).require(ctx)
        self._validate(content_id, grant_type, amount)
        receipt = await self._await_receipt(source, tx_hash)
        self._check_receipt(receipt, ctx, content_id, grant_type, amount)
        return AccessLogStore.record(
            self.db, content_id, identity, grant_type, amount, tx_hash=tx_hash
        )
