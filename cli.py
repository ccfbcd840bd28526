"""Small CLI for interacting with the ballot-box Flask server.

Usage examples:
    python cli.py keygen
    python cli.py public-key
    python cli.py encrypt --section <section_id> --file plain_section.json
    python cli.py encrypt-ballot --file plain_ballot_paper.json
    python cli.py decrypt --section <section_id> --file encrypted_section.json --with-proofs

The server URL defaults to BALLOT_BOX_SERVER_URL (or http://127.0.0.1:5000).
"""

import argparse
import json

import requests

from ballot_box.config import EngineConfig

BASE = EngineConfig.from_env().server_url


def _load(path: str):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _show(r: requests.Response):
    print(json.dumps(r.json(), indent=2))


def keygen(base: str = BASE):
    # safe-prime search can take a while at 2048 bits
    r = requests.post(f"{base}/keys", timeout=600)
    _show(r)


def public_key(base: str = BASE):
    r = requests.get(f"{base}/keys/public", timeout=2)
    _show(r)


def encrypt(section_id: str, path: str, base: str = BASE):
    r = requests.post(f"{base}/sections/{section_id}/encrypt", json=_load(path), timeout=30)
    _show(r)


def encrypt_ballot(path: str, base: str = BASE):
    r = requests.post(f"{base}/ballot-papers/encrypt", json=_load(path), timeout=30)
    _show(r)


def decrypt(section_id: str, path: str, with_proofs: bool = False, base: str = BASE):
    body = _load(path)
    body["withProofs"] = with_proofs
    r = requests.post(f"{base}/sections/{section_id}/decrypt", json=body, timeout=60)
    _show(r)


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--url", default=BASE)
    sub = p.add_subparsers(dest="cmd")
    sub.add_parser("keygen")
    sub.add_parser("public-key")
    e = sub.add_parser("encrypt")
    e.add_argument("--section", required=True)
    e.add_argument("--file", required=True)
    b = sub.add_parser("encrypt-ballot")
    b.add_argument("--file", required=True)
    d = sub.add_parser("decrypt")
    d.add_argument("--section", required=True)
    d.add_argument("--file", required=True)
    d.add_argument("--with-proofs", action="store_true")
    args = p.parse_args()
    if args.cmd == "keygen":
        keygen(args.url)
    elif args.cmd == "public-key":
        public_key(args.url)
    elif args.cmd == "encrypt":
        encrypt(args.section, args.file, args.url)
    elif args.cmd == "encrypt-ballot":
        encrypt_ballot(args.file, args.url)
    elif args.cmd == "decrypt":
        decrypt(args.section, args.file, args.with_proofs, args.url)
    else:
        p.print_help()


if __name__ == "__main__":
    main()
