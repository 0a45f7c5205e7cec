# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Args:
        value: UUID as string or UUID object

    Returns:
        String representation of the UUID

    Example:
        wallet_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        wallet_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def same_id(left: str | UUID | None, right: str | UUID | None) -> bool:
    """Compare two ids regardless of str/UUID representation."""
    if left is None or right is None:
        return False
    return normalize_uuid(left) == normalize_uuid(right)


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601, the format stored in timestamp columns."""
    return utc_now().isoformat()


def days_from_now(days: int) -> str:
    return (utc_now() + timedelta(days=days)).isoformat()


def to_iso(value: datetime | str | None) -> str | None:
    """
    Normalize a date/datetime to an ISO string.

    Naive datetimes are assumed to be UTC so string comparisons against
    stored timestamps stay consistent.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp back into an aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Invitation Codes
# =============================================================================

# No I, O, 0 or 1 so codes survive being read aloud
INVITATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITATION_CODE_LENGTH = 12


def generate_invitation_code(length: int = INVITATION_CODE_LENGTH) -> str:
    """Random invitation code drawn from INVITATION_CODE_ALPHABET."""
    return "".join(secrets.choice(INVITATION_CODE_ALPHABET) for _ in range(length))
