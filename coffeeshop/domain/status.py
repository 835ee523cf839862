# coffeeshop/domain/status.py
"""
Mapowanie statusow Midtrans (transaction_status + fraud_status)
na status zamowienia.
"""

PENDING = "pending"
SUCCESS = "success"
CHALLENGE = "challenge"
FAILED = "failed"

ORDER_STATUSES = (PENDING, SUCCESS, CHALLENGE, FAILED)

# po success/failed status zamowienia juz sie nie zmienia
TERMINAL_STATUSES = frozenset({SUCCESS, FAILED})

_FAILED_TRANSACTION_STATUSES = frozenset({"deny", "cancel", "expire", "failure"})


def map_transaction_status(
    transaction_status: str | None,
    fraud_status: str | None = None,
    capture_challenge_status: str = CHALLENGE,
) -> str:
    """
    capture + accept      -> success
    capture + challenge   -> capture_challenge_status (challenge albo success)
    capture + deny        -> failed
    settlement            -> success
    pending               -> pending
    deny/cancel/expire/failure -> failed
    wszystko inne         -> pending
    """
    if capture_challenge_status not in (CHALLENGE, SUCCESS):
        raise ValueError(f"Unsupported capture/challenge status: {capture_challenge_status}")

    status = (transaction_status or "").strip().lower()
    fraud = (fraud_status or "").strip().lower()

    if status == "capture":
        if fraud == "challenge":
            return capture_challenge_status
        if fraud == "deny":
            return FAILED
        return SUCCESS

    if status == "settlement":
        return SUCCESS

    if status == "pending":
        return PENDING

    if status in _FAILED_TRANSACTION_STATUSES:
        return FAILED

    return PENDING


def is_transition_allowed(current: str, new: str) -> bool:
    if current == new:
        return True
    if current in TERMINAL_STATUSES:
        return False
    # spozniony pending nie cofa challenge
    return new != PENDING
