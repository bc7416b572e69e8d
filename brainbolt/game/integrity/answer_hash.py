"""Answer commitments.

The correct choice of a question is stored only as ``HMAC(secret, index)``.
This keeps the index out of payloads sent to clients, but with four possible
answers anyone holding the secret can recover it by trying each index. It is
an integrity guard, not confidentiality.
"""

from __future__ import annotations

import hashlib
import hmac

ANSWER_CHOICES_COUNT = 4


def hash_answer(answer_index: int, *, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"),
        str(answer_index).encode("utf-8"),
        hashlib.sha256,
    )
    return digest.hexdigest()


def verify_answer(answer_index: int, answer_hash: str, *, secret: str) -> bool:
    return hmac.compare_digest(hash_answer(answer_index, secret=secret), answer_hash)


def find_correct_answer(answer_hash: str, *, secret: str) -> int:
    for answer_index in range(ANSWER_CHOICES_COUNT):
        if verify_answer(answer_index, answer_hash, secret=secret):
            return answer_index
    return -1
