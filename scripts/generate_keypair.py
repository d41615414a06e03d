#!/usr/bin/env python3
"""Generate an Ed25519 keypair for a counterparty service.

The public key goes into the signer's RISK_PUBLIC_KEY or WALLET_PUBLIC_KEY;
the private key stays with the risk-control or wallet service.

Usage:
    python scripts/generate_keypair.py
    python scripts/generate_keypair.py --sign '{"operation_id": ...}' --key <private hex>
"""

import argparse
import json
import sys

from walletsigner.authorization import PayloadSigner


def main() -> int:
    parser = argparse.ArgumentParser(description="Ed25519 keys for signing-request authorization")
    parser.add_argument("--sign", metavar="JSON", help="Canonical payload to sign instead of generating keys")
    parser.add_argument("--key", metavar="HEX", help="Private key used with --sign")
    args = parser.parse_args()

    if args.sign:
        if not args.key:
            print("Error: --sign requires --key", file=sys.stderr)
            return 1
        try:
            payload = json.loads(args.sign)
        except json.JSONDecodeError as e:
            print(f"Error: invalid JSON payload: {e}", file=sys.stderr)
            return 1
        print(PayloadSigner(args.key).sign(payload))
        return 0

    signer = PayloadSigner.generate()
    print("=" * 60)
    print("Ed25519 keypair")
    print("=" * 60)
    print(f"Public key:  {signer.public_key_hex}")
    print(f"Private key: {signer.private_key_hex}")
    print()
    print("Keep the private key secret. Configure the public key on the signer.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
