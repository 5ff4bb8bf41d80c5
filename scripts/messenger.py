#!/usr/bin/env python3
"""
Encrypt and Decrypt Messages from the Command Line

Counterpart public keys are read from a JSON party list, since the
registry itself is not persisted between runs.

Usage:
    python scripts/messenger.py init --name alice --mode rsa --out alice.pem
    python scripts/messenger.py add --name alice --mode rsa --parties parties.json --id bob --pem bob.pem
    python scripts/messenger.py encrypt --name alice --mode rsa --parties parties.json --to bob "hello bob"
    python scripts/messenger.py decrypt --name bob --mode rsa ENVELOPE
"""

import argparse
import os
import sys

from cryptomessenger import AlgorithmMode, EngineConfig, Session
from cryptomessenger.common.exceptions import CryptoMessengerException
from cryptomessenger.common.log import configure_logging
from cryptomessenger.identity import validate_name
from cryptomessenger.storage.keystore import KeyStore


def status(message: str):
    """Status lines go to stderr so stdout stays pipeable."""
    print(message, file=sys.stderr)


def open_session(args) -> Session:
    config = EngineConfig.from_env(key_dir=args.key_dir, key_size=args.key_size)
    configure_logging(config.log_level)

    session = Session.open(args.name, AlgorithmMode(args.mode), config)
    status(f"[*] Identity '{session.name}' ({session.mode.name}) "
           f"{session.identity.state.name.lower().replace('_', ' ')}")

    if getattr(args, "parties", None) and os.path.exists(args.parties):
        with open(args.parties, "r", encoding="utf-8") as f:
            count = session.import_party_list(f.read())
        status(f"[*] Loaded {count} parties from {args.parties}")

    return session


def cmd_init(args):
    session = open_session(args)
    pem = session.public_key_pem()

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(pem)
        status(f"[+] Public key saved to: {args.out}")
    else:
        print(pem, end="")


def cmd_add(args):
    session = open_session(args)

    with open(args.pem, "r", encoding="utf-8") as f:
        session.receive_public_key_from(args.id, f.read())

    with open(args.parties, "w", encoding="utf-8") as f:
        f.write(session.export_party_list())
    status(f"[+] Party '{args.id}' saved to: {args.parties}")


def cmd_remove(args):
    session = open_session(args)
    session.remove_party(args.id)

    with open(args.parties, "w", encoding="utf-8") as f:
        f.write(session.export_party_list())
    status(f"[+] Party '{args.id}' removed from: {args.parties}")


def cmd_encrypt(args):
    session = open_session(args)
    print(session.encrypt_message(args.text, args.to))


def cmd_decrypt(args):
    session = open_session(args)
    print(session.decrypt_message(args.envelope, args.sender))


def cmd_delete(args):
    config = EngineConfig.from_env(key_dir=args.key_dir, key_size=args.key_size)
    configure_logging(config.log_level)

    # Opening a session would generate the pair being deleted
    name = validate_name(args.name)
    KeyStore(config.key_dir).delete(name, AlgorithmMode(args.mode))
    status(f"[+] Keys for '{name}' deleted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exchange encrypted messages with parties whose public keys you hold"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--name", required=True, help="Local identity name")
    common.add_argument(
        "--mode",
        default="rsa",
        help="Algorithm mode: rsa (RSA hybrid) or dh (Diffie-Hellman + AES) (default: rsa)"
    )
    common.add_argument("--key-dir", help="Key directory (default: $CRYPTOMESSENGER_KEY_DIR or ./keys)")
    common.add_argument("--key-size", type=int, help="RSA key size in bits for new identities (default: 2048; dh mode always uses 2048)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", parents=[common], help="Create or load an identity and print its public key")
    p.add_argument("--out", help="Write the PEM public key to this file")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("add", parents=[common], help="Add a party's public key to a party list")
    p.add_argument("--parties", required=True, help="JSON party list file")
    p.add_argument("--id", required=True, help="Party identifier")
    p.add_argument("--pem", required=True, help="File holding the party's PEM public key")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("remove", parents=[common], help="Remove a party from a party list")
    p.add_argument("--parties", required=True, help="JSON party list file")
    p.add_argument("--id", required=True, help="Party identifier")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("encrypt", parents=[common], help="Encrypt a message for a party")
    p.add_argument("--parties", required=True, help="JSON party list file")
    p.add_argument("--to", required=True, help="Recipient identifier")
    p.add_argument("text", help="Message text")
    p.set_defaults(func=cmd_encrypt)

    p = sub.add_parser("decrypt", parents=[common], help="Decrypt a Base64 envelope")
    p.add_argument("--parties", help="JSON party list file (needed in dh mode)")
    p.add_argument("--from", dest="sender", help="Sender identifier (needed in dh mode)")
    p.add_argument("envelope", help="Base64 envelope")
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser("delete", parents=[common], help="Delete an identity's persisted keys")
    p.set_defaults(func=cmd_delete)

    return parser


def main():
    args = build_parser().parse_args()

    try:
        args.func(args)
    except (CryptoMessengerException, ValueError, OSError) as e:
        status(f"[✗] {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
