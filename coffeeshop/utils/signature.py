# coffeeshop/utils/signature.py
import hashlib
import hmac


def compute_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    """sha512(order_id + status_code + gross_amount + server_key), hex."""
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(
    order_id: str,
    status_code: str | None,
    gross_amount: str | None,
    signature_key: str | None,
    server_key: str,
) -> bool:
    if not signature_key or not server_key:
        return False

    expected = compute_signature(order_id, status_code or "", gross_amount or "", server_key)
    # stala czasowo, nie zdradza ktory fragment sie nie zgadza
    return hmac.compare_digest(
        expected.encode("utf-8"),
        signature_key.strip().lower().encode("utf-8"),
    )
