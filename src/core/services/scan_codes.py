"""Scan code minting for delivery batches."""

import secrets

# No 0/O or 1/I, so codes survive being read aloud or typed from a label
SCAN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def mint_scan_code(prefix: str = "DEL", length: int = 8) -> str:
    """Random code such as ``DEL-7K2QX9MA``."""
    body = "".join(secrets.choice(SCAN_CODE_ALPHABET) for _ in range(length))
    return f"{prefix}-{body}"
