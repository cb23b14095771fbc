"""
Transaction service: the only code path that changes an asset's
status or holder.

Every lifecycle action runs the same steps:

  1. Validate the request payload (``itam.validation``).
  2. Inside the asset's atomic scope, load the asset (and, for
     checkout, the target user).
  3. Look the move up in the transition table.
  4. Apply the new status and holder.
  5. Append one immutable ``Transaction``.

Any failure before step 4 raises without touching storage; a storage
failure during steps 4-5 rolls both back together.

Query helpers for the transaction log live at the bottom of the module.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import desc

from itam.errors import InvalidStateTransitionError, NotFoundError, ValidationError
from itam.models.transaction import Transaction
from itam.repositories import (
    AssetRepository,
    SqlAlchemyAssetRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyUserRepository,
    TransactionRepository,
    UserRepository,
)
from itam.state_machine import (
    ActionType,
    AssetStatus,
    ConditionStatus,
    describe_transition,
    next_status,
)
from itam.validation import validate_request

logger = logging.getLogger(__name__)


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class AssetState:
    """Status and holder of an asset right after a transition.

    ``holder_id`` is the holder's external id, never the row id.
    """

    asset_id: str
    status: AssetStatus
    holder_id: str | None

    def to_dict(self) -> dict:
        return {
            "uuid": self.asset_id,
            "status": self.status.value,
            "holder_id": self.holder_id,
        }


@dataclass(frozen=True)
class TransactionResult:
    """What a successful action returns to its caller."""

    asset: AssetState
    transaction: Transaction
    description: str


# =========================================================================
# Per-action details
# =========================================================================

# Condition recorded for actions that do not take one from the request.
_IMPLIED_CONDITION: dict[ActionType, ConditionStatus] = {
    ActionType.SEND_TO_REPAIR: ConditionStatus.DAMAGED,
    ActionType.COMPLETE_REPAIR: ConditionStatus.GOOD,
    ActionType.REPORT_LOST: ConditionStatus.LOST,
    ActionType.REPORT_FOUND: ConditionStatus.GOOD,
}

_DEFAULT_NOTES: dict[ActionType, str] = {
    ActionType.COMPLETE_REPAIR: "Repair completed",
    ActionType.REPORT_FOUND: "Asset recovered",
}

_REJECTION_MESSAGES: dict[ActionType, str] = {
    ActionType.CHECKOUT: (
        "Cannot checkout asset with status '{status}'. Asset must be available."
    ),
    ActionType.CHECKIN: (
        "Cannot checkin asset with status '{status}'. Asset must be assigned."
    ),
    ActionType.SEND_TO_REPAIR: (
        "Cannot send asset with status '{status}' to repair. "
        "Asset must be available."
    ),
    ActionType.COMPLETE_REPAIR: (
        "Asset is not in repair status (current status '{status}')."
    ),
    ActionType.REPORT_LOST: (
        "Cannot report asset with status '{status}' as lost. "
        "Asset must be assigned."
    ),
    ActionType.REPORT_FOUND: (
        "Asset is not in missing status (current status '{status}')."
    ),
    ActionType.DISPOSE: (
        "Cannot dispose asset with current status '{status}'. "
        "Asset must be available, in repair, or missing."
    ),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================================================================
# Processor
# =========================================================================


class TransactionProcessor:
    """
    Applies lifecycle actions to assets.

    Args:
        assets:       Asset lookup/persist boundary with per-asset atomicity.
        users:        Read-only user lookup.
        transactions: Append-only transaction log.
        clock:        Returns the timestamp used when a request has none.
    """

    def __init__(
        self,
        assets: AssetRepository,
        users: UserRepository,
        transactions: TransactionRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.assets = assets
        self.users = users
        self.transactions = transactions
        self._clock = clock

    # -- One method per action ---------------------------------------------

    def checkout(
        self,
        asset_id: str,
        user_id: str,
        notes: str | None = None,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        """Assign an available asset to ``user_id``."""
        return self.process(
            ActionType.CHECKOUT,
            {
                "asset_id": asset_id,
                "user_id": user_id,
                "notes": notes,
                "transaction_date": transaction_date,
            },
            performed_by=performed_by,
        )

    def checkin(
        self,
        asset_id: str,
        condition_status: str,
        notes: str | None = None,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        """Return an assigned asset; the condition picks the next status."""
        return self.process(
            ActionType.CHECKIN,
            {
                "asset_id": asset_id,
                "condition_status": condition_status,
                "notes": notes,
                "transaction_date": transaction_date,
            },
            performed_by=performed_by,
        )

    def send_to_repair(
        self,
        asset_id: str,
        notes: str,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        return self.process(
            ActionType.SEND_TO_REPAIR,
            {"asset_id": asset_id, "notes": notes, "transaction_date": transaction_date},
            performed_by=performed_by,
        )

    def complete_repair(
        self,
        asset_id: str,
        notes: str | None = None,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        return self.process(
            ActionType.COMPLETE_REPAIR,
            {"asset_id": asset_id, "notes": notes, "transaction_date": transaction_date},
            performed_by=performed_by,
        )

    def report_lost(
        self,
        asset_id: str,
        notes: str,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        return self.process(
            ActionType.REPORT_LOST,
            {"asset_id": asset_id, "notes": notes, "transaction_date": transaction_date},
            performed_by=performed_by,
        )

    def report_found(
        self,
        asset_id: str,
        notes: str | None = None,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        return self.process(
            ActionType.REPORT_FOUND,
            {"asset_id": asset_id, "notes": notes, "transaction_date": transaction_date},
            performed_by=performed_by,
        )

    def dispose(
        self,
        asset_id: str,
        notes: str,
        *,
        performed_by: int,
        transaction_date: datetime | str | None = None,
    ) -> TransactionResult:
        return self.process(
            ActionType.DISPOSE,
            {"asset_id": asset_id, "notes": notes, "transaction_date": transaction_date},
            performed_by=performed_by,
        )

    # -- Shared algorithm --------------------------------------------------

    def process(
        self,
        action: ActionType | str,
        payload: Mapping[str, Any],
        *,
        performed_by: int | None,
    ) -> TransactionResult:
        """
        Validate and apply ``action`` described by ``payload``.

        Args:
            action:       The lifecycle action (enum or its wire value).
            payload:      Request fields; unknown keys are ignored.
            performed_by: Internal ID of the operator processing it.

        Returns:
            The asset's new status/holder and the logged transaction.

        Raises:
            ValidationError:             Malformed payload or no operator.
            NotFoundError:               Unknown asset, or unknown user
                                         on checkout.
            InvalidStateTransitionError: The asset's status forbids it.
        """
        cleaned = validate_request(action, payload)
        action = ActionType(action)
        if performed_by is None:
            raise ValidationError(
                "Operator is required",
                [{"field": "performed_by", "message": "Operator is required"}],
            )

        asset_id = cleaned["asset_id"]
        condition = cleaned.get("condition_status")

        with self.assets.atomic(asset_id):
            asset = self.assets.find_by_id(asset_id, for_update=True)
            if asset is None:
                raise NotFoundError("Asset not found")

            subject = None
            if action is ActionType.CHECKOUT:
                subject = self.users.find_by_id(cleaned["user_id"])
                if subject is None:
                    raise NotFoundError("Employee not found")

            current = AssetStatus(asset.status)
            target = next_status(current, action, condition)
            if target is None:
                raise InvalidStateTransitionError(
                    current.value,
                    action.value,
                    _REJECTION_MESSAGES[action].format(status=current.value),
                )

            previous_holder_id = asset.current_holder_id
            asset.status = target.value
            asset.current_holder_id = (
                subject.id if action is ActionType.CHECKOUT else None
            )
            self.assets.save(asset)

            transaction = self.transactions.create(
                Transaction(
                    asset_id=asset.id,
                    user_id=self._subject_id(action, subject, previous_holder_id),
                    admin_id=performed_by,
                    action_type=action.value,
                    condition_status=self._recorded_condition(action, condition),
                    transaction_date=self._timestamp(cleaned.get("transaction_date")),
                    notes=cleaned.get("notes") or _DEFAULT_NOTES.get(action),
                )
            )

        logger.info(
            "Asset %s: %s (%s -> %s) by user %s",
            asset_id,
            action.value,
            current.value,
            target.value,
            performed_by,
        )
        return TransactionResult(
            asset=AssetState(
                asset_id=asset_id,
                status=target,
                holder_id=subject.uuid if subject is not None else None,
            ),
            transaction=transaction,
            description=describe_transition(current, target),
        )

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _subject_id(action, subject, previous_holder_id) -> int | None:
        if action is ActionType.CHECKOUT:
            return subject.id
        if action in (ActionType.CHECKIN, ActionType.REPORT_LOST):
            return previous_holder_id
        return None

    @staticmethod
    def _recorded_condition(action, condition) -> str | None:
        if action is ActionType.CHECKIN:
            return condition.value
        implied = _IMPLIED_CONDITION.get(action)
        return implied.value if implied else None

    def _timestamp(self, value: datetime | None) -> datetime:
        if value is None:
            return self._clock()
        # Naive timestamps from clients are taken as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def default_processor() -> TransactionProcessor:
    """Processor wired to the application database session."""
    return TransactionProcessor(
        SqlAlchemyAssetRepository(),
        SqlAlchemyUserRepository(),
        SqlAlchemyTransactionRepository(),
    )


# =========================================================================
# Transaction log queries
# =========================================================================


def get_transactions(
    page: int = 1,
    per_page: int = 20,
    action_type: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """
    Query the transaction log, newest first, with optional filters.

    Returns:
        A Flask-SQLAlchemy pagination object with ``.items``,
        ``.pages``, ``.total``, etc.
    """
    query = Transaction.query.order_by(
        desc(Transaction.transaction_date), desc(Transaction.id)
    )

    if action_type:
        query = query.filter(Transaction.action_type == action_type)
    if start_date:
        query = query.filter(Transaction.transaction_date >= start_date)
    if end_date:
        query = query.filter(Transaction.transaction_date <= end_date)

    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_transaction_by_uuid(transaction_id: str) -> Transaction:
    """
    Return a single logged transaction.

    Raises:
        NotFoundError: If no transaction has this identifier.
    """
    transaction = Transaction.query.filter_by(uuid=transaction_id).first()
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return transaction
