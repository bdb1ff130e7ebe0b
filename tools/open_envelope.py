"""Open a mandate envelope with the recipient private key.

Usage:
    python tools/open_envelope.py <private_key.asc> <envelope.asc | ->

Prints the submission record as indented JSON.
"""
import json
import sys

from nacl.exceptions import CryptoError
from nacl.public import PrivateKey, SealedBox

from mandate_intake.encryption import ENVELOPE_LABEL
from mandate_intake.keys import PRIVATE_KEY_LABEL, dearmor


def open_envelope(envelope_text: str, private_key_text: str) -> dict:
    _, sk_raw = dearmor(private_key_text, PRIVATE_KEY_LABEL)
    _, sealed = dearmor(envelope_text, ENVELOPE_LABEL)
    plaintext = SealedBox(PrivateKey(sk_raw)).decrypt(sealed)
    return json.loads(plaintext.decode("utf-8"))


def main(key_path: str, envelope_path: str) -> int:
    with open(key_path, "r", encoding="utf-8") as f:
        private_key_text = f.read()
    if envelope_path == "-":
        envelope_text = sys.stdin.read()
    else:
        with open(envelope_path, "r", encoding="utf-8") as f:
            envelope_text = f.read()

    try:
        record = open_envelope(envelope_text, private_key_text)
    except (ValueError, CryptoError) as e:
        print(f"FAIL: envelope could not be opened: {e}", file=sys.stderr)
        return 1
    print(json.dumps(record, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python tools/open_envelope.py <private_key.asc> <envelope.asc | ->")
        raise SystemExit(2)
    raise SystemExit(main(sys.argv[1], sys.argv[2]))
