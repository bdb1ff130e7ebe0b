"""Generate the recipient key pair.

Writes the armored public key where the service serves it from
(PUBLIC_KEY_PATH, default keys/public-key.asc) and the private key to
secrets/mandate_private_key.asc. The private key belongs to whoever reads
the mandates; it is never deployed with the service.
"""
import argparse
import os
from pathlib import Path

from mandate_intake.keys import generate_key_pair


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--kid", default="mandate-recipient-01")
    ap.add_argument("--public", default=os.getenv("PUBLIC_KEY_PATH", "keys/public-key.asc"))
    ap.add_argument("--private", default="secrets/mandate_private_key.asc")
    args = ap.parse_args()

    public, private = generate_key_pair(args.kid)

    pub_path = Path(args.public)
    priv_path = Path(args.private)
    pub_path.parent.mkdir(parents=True, exist_ok=True)
    priv_path.parent.mkdir(parents=True, exist_ok=True)

    pub_path.write_text(public, encoding="utf-8")
    priv_path.write_text(private, encoding="utf-8")
    os.chmod(priv_path, 0o600)

    print(f"Generated key pair {args.kid}: public={pub_path} private={priv_path}")


if __name__ == "__main__":
    main()
