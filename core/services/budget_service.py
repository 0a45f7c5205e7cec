# =============================================================================
# core/services/budget_service.py - Envelope Budget Movements
# =============================================================================
# Moves budget between wallets and envelopes through the budget_assignments
# ledger:
#
#   assign:   wallet --(+amount)--> envelope   (projected balance drops)
#   return:   envelope --(-free)--> wallet(s)  (projected balance recovers)
#   transfer: envelope A --(-x)--> envelope B  (two ledger rows)
#
# Budget is a soft reservation: assigning never touches a wallet's real
# balance, only its projected balance. Real money leaves a wallet when an
# expense is recorded.
#
# A user's free budget in an envelope is
#   sum(user's ledger rows in the envelope) - user's expenses in the envelope
# =============================================================================

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from app.exceptions import (
    InsufficientBudgetError,
    InvalidInputError,
    PermissionDeniedError,
)
from core.models.envelope import AssignmentType
from core.models.wallet import MovementType
from core.services.envelope_service import EnvelopeService
from core.services.wallet_service import WalletService
from lib.money import ZERO, split_proportionally, sum_amounts, to_amount, to_decimal
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


class BudgetService:
    """
    Service for the wallet <-> envelope budget ledger.
    """

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _participant_or_403(envelope: dict[str, Any], user_id: UUID | str) -> dict[str, Any]:
        participant = EnvelopeService.get_participant(envelope["id"], user_id)
        if not participant:
            raise PermissionDeniedError(
                "You are not a participant of this envelope",
                details={"envelope_id": envelope["id"]},
            )
        return participant

    @staticmethod
    def _insert_ledger_row(
        envelope: dict[str, Any],
        wallet: dict[str, Any],
        user_id: UUID | str,
        amount: Decimal,
        assignment_type: AssignmentType,
        description: str | None = None,
    ) -> dict[str, Any]:
        return SupabaseClient.insert_row("budget_assignments", {
            "envelope_id": envelope["id"],
            "wallet_id": wallet["id"],
            "user_id": normalize_uuid(user_id),
            "amount": to_amount(amount),
            "currency_id": envelope["currency_id"],
            "type": assignment_type.value,
            "description": description,
        })

    @staticmethod
    def _shift_totals(envelope: dict[str, Any], participant: dict[str, Any], delta: Decimal) -> dict[str, Any]:
        """
        Move the envelope's and the participant's tracked budget by `delta`.

        Totals never go below zero.

        Returns:
            Updated envelope dict
        """
        participant_budget = max(to_decimal(participant.get("assigned_budget")) + delta, ZERO)
        SupabaseClient.update_row("envelope_participants", participant["id"], {
            "assigned_budget": to_amount(participant_budget),
        })

        envelope_budget = max(to_decimal(envelope.get("assigned_budget")) + delta, ZERO)
        updated = SupabaseClient.update_row("envelopes", envelope["id"], {
            "assigned_budget": to_amount(envelope_budget),
        })
        return updated or {**envelope, "assigned_budget": to_amount(envelope_budget)}

    @staticmethod
    def ledger_rows(
        envelope_id: UUID | str,
        user_id: UUID | str | None = None,
    ) -> list[dict[str, Any]]:
        filters = {"envelope_id": envelope_id}
        if user_id:
            filters["user_id"] = user_id
        return SupabaseClient.fetch_rows("budget_assignments", filters)

    @staticmethod
    def user_free_budget(envelope_id: UUID | str, user_id: UUID | str) -> dict[str, Decimal]:
        """
        What the user assigned to an envelope, spent in it, and has left.
        """
        assigned = sum_amounts(BudgetService.ledger_rows(envelope_id, user_id))
        spent = sum_amounts(EnvelopeService.expense_rows(envelope_id, user_id=user_id))
        return {"assigned": assigned, "spent": spent, "free": assigned - spent}

    # -------------------------------------------------------------------------
    # Assign
    # -------------------------------------------------------------------------

    @staticmethod
    def assign_budget(
        envelope_id: UUID | str,
        user_id: UUID | str,
        wallet_id: UUID | str,
        amount: Any,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Assign budget from a wallet to an envelope.

        Writes an `initial` ledger row, grows the participant's and the
        envelope's tracked budget and reserves the amount on the wallet's
        projected balance. The real balance is untouched.

        Raises:
            InvalidInputError: Non-positive amount or currency mismatch
            EnvelopeNotFoundError / WalletNotFoundError: Missing resources
            PermissionDeniedError: Not a participant, or wallet not owned
        """
        value = to_decimal(amount)
        if value <= 0:
            raise InvalidInputError("Amount must be greater than zero", code="INVALID_AMOUNT")

        envelope = EnvelopeService.get_envelope(envelope_id, user_id)
        participant = BudgetService._participant_or_403(envelope, user_id)
        wallet = WalletService.get_wallet(wallet_id, user_id)

        if wallet["currency_id"] != envelope["currency_id"]:
            raise InvalidInputError(
                "Wallet and envelope must use the same currency",
                code="CURRENCY_MISMATCH",
                details={"wallet_currency": wallet["currency_id"], "envelope_currency": envelope["currency_id"]},
            )

        assignment = BudgetService._insert_ledger_row(
            envelope, wallet, user_id, value, AssignmentType.INITIAL, description
        )
        updated_envelope = BudgetService._shift_totals(envelope, participant, value)
        updated_wallet = WalletService.apply_balance_delta(wallet, ZERO, -value)

        WalletService.record_movement(
            wallet,
            MovementType.ENVELOPE_ASSIGNMENT,
            amount=value,
            real_balance_after=to_decimal(wallet["real_balance"]),
            description=description or f"Budget for {envelope['name']}",
        )

        logger.info(f"Assigned {to_amount(value)} from wallet {wallet['id']} to envelope {envelope['id']}")
        return {"assignment": assignment, "envelope": updated_envelope, "wallet": updated_wallet}

    @staticmethod
    def list_assignments(envelope_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Ledger of an envelope plus a budget summary.

        Returns:
            Dict with assignments and summary (assigned_budget, spent, free)
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id)
        rows = BudgetService.ledger_rows(envelope["id"])

        assigned = to_decimal(envelope["assigned_budget"])
        spent = to_decimal(envelope.get("spent"))
        return {
            "assignments": rows,
            "summary": {
                "assigned_budget": to_amount(assigned),
                "spent": to_amount(spent),
                "free": to_amount(assigned - spent),
            },
        }

    # -------------------------------------------------------------------------
    # Return
    # -------------------------------------------------------------------------

    @staticmethod
    def return_budget(
        envelope_id: UUID | str,
        user_id: UUID | str,
        target_wallet_id: UUID | str | None = None,
    ) -> dict[str, Any]:
        """
        Give the user's unspent budget in an envelope back to wallets.

        With a target wallet the whole free amount goes there. Without one
        it is split across the wallets the user funded the envelope from,
        proportionally to each wallet's net contribution.

        Raises:
            InvalidInputError: If there's no free budget to return
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id)
        participant = BudgetService._participant_or_403(envelope, user_id)

        budget = BudgetService.user_free_budget(envelope["id"], user_id)
        free = budget["free"]
        if free <= 0:
            raise InvalidInputError(
                "No free budget to return",
                code="NO_FREE_BUDGET",
                details={
                    "assigned": to_amount(budget["assigned"]),
                    "spent": to_amount(budget["spent"]),
                },
            )

        if target_wallet_id:
            allocations = [(WalletService.get_wallet(target_wallet_id, user_id), free)]
        else:
            allocations = BudgetService._proportional_allocations(envelope["id"], user_id, free)

        returns = []
        for wallet, share in allocations:
            BudgetService._insert_ledger_row(
                envelope, wallet, user_id, -share, AssignmentType.DECREASE, "Budget returned"
            )
            WalletService.apply_balance_delta(wallet, ZERO, share)
            WalletService.record_movement(
                wallet,
                MovementType.ENVELOPE_RETURN,
                amount=share,
                real_balance_after=to_decimal(wallet["real_balance"]),
                description=f"Returned from {envelope['name']}",
            )
            returns.append({"wallet_id": wallet["id"], "amount": to_amount(share)})

        returned = sum((share for _, share in allocations), ZERO)
        updated_envelope = BudgetService._shift_totals(envelope, participant, -returned)

        logger.info(f"Returned {to_amount(returned)} from envelope {envelope['id']} to {len(returns)} wallet(s)")
        return {"returned": to_amount(returned), "returns": returns, "envelope": updated_envelope}

    @staticmethod
    def _proportional_allocations(
        envelope_id: str,
        user_id: UUID | str,
        free: Decimal,
    ) -> list[tuple[dict[str, Any], Decimal]]:
        net_by_wallet: dict[str, Decimal] = {}
        for row in BudgetService.ledger_rows(envelope_id, user_id):
            net_by_wallet[row["wallet_id"]] = net_by_wallet.get(row["wallet_id"], ZERO) + to_decimal(row["amount"])

        funding = []
        for wallet_id, net in sorted(net_by_wallet.items()):
            if net <= 0:
                continue
            wallet = SupabaseClient.fetch_row("wallets", wallet_id)
            # Deleted wallets can't receive budget back
            if wallet:
                funding.append((wallet, net))

        if not funding:
            raise InvalidInputError(
                "No funding wallet available to return the budget to",
                code="NO_FUNDING_WALLET",
                suggestion="Pass wallet_id to choose where the budget goes",
            )

        shares = split_proportionally(free, [net for _, net in funding])
        return [(wallet, share) for (wallet, _), share in zip(funding, shares) if share > 0]

    # -------------------------------------------------------------------------
    # Envelope -> Envelope
    # -------------------------------------------------------------------------

    @staticmethod
    def transfer_between_envelopes(
        user_id: UUID | str,
        source_envelope_id: UUID | str,
        target_envelope_id: UUID | str,
        wallet_id: UUID | str,
        amount: Any,
    ) -> dict[str, Any]:
        """
        Move free budget from one envelope to another.

        Writes a `decrease` row on the source and an `increase` row on the
        target, then moves participant and envelope totals. The two ledger
        writes are independent statements.

        Raises:
            InvalidInputError: Non-positive amount or same envelope
            InsufficientBudgetError: If the user's free budget in the source is too small
        """
        value = to_decimal(amount)
        if value <= 0:
            raise InvalidInputError("Amount must be greater than zero", code="INVALID_AMOUNT")
        if normalize_uuid(source_envelope_id) == normalize_uuid(target_envelope_id):
            raise InvalidInputError("Source and target envelopes must be different", code="SAME_ENVELOPE")

        source = EnvelopeService.get_envelope(source_envelope_id, user_id)
        target = EnvelopeService.get_envelope(target_envelope_id, user_id)
        source_participant = BudgetService._participant_or_403(source, user_id)
        target_participant = BudgetService._participant_or_403(target, user_id)
        wallet = WalletService.get_wallet(wallet_id, user_id)

        if source["currency_id"] != target["currency_id"]:
            raise InvalidInputError(
                "Envelopes must use the same currency",
                code="CURRENCY_MISMATCH",
                details={"source_currency": source["currency_id"], "target_currency": target["currency_id"]},
            )
        if wallet["currency_id"] != source["currency_id"]:
            raise InvalidInputError(
                "Wallet and envelopes must use the same currency",
                code="CURRENCY_MISMATCH",
                details={"wallet_currency": wallet["currency_id"], "envelope_currency": source["currency_id"]},
            )

        free = BudgetService.user_free_budget(source["id"], user_id)["free"]
        if free < value:
            raise InsufficientBudgetError(available=to_amount(free), requested=to_amount(value))

        BudgetService._insert_ledger_row(
            source, wallet, user_id, -value, AssignmentType.DECREASE, f"Transfer to {target['name']}"
        )
        BudgetService._insert_ledger_row(
            target, wallet, user_id, value, AssignmentType.INCREASE, f"Transfer from {source['name']}"
        )

        updated_source = BudgetService._shift_totals(source, source_participant, -value)
        updated_target = BudgetService._shift_totals(target, target_participant, value)

        logger.info(f"Moved {to_amount(value)} from envelope {source['id']} to {target['id']}")
        return {
            "source_envelope": updated_source,
            "target_envelope": updated_target,
            "amount": to_amount(value),
        }
