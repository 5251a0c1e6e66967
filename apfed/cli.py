#!/usr/bin/env python3
"""
apfed CLI

Command-line interface for talking to ActivityPub servers:
  apfed webfinger - Resolve a handle
  apfed actor - Fetch an actor document
  apfed collection - Fetch an actor's collection, optionally all pages
  apfed post - Deliver a signed JSON document
  apfed keygen - Generate an actor key pair
  apfed serve - Run an inbox server for a local actor

Usage:
  apfed webfinger <handle>
  apfed actor <handle|url> [--key-id <url> --private-key <pem>]
  apfed collection <handle|url> --kind outbox [--pages 3]
  apfed post <inbox-url> <activity.json> --key-id <url> --private-key <pem>
  apfed keygen <username> --domain <domain> [--out-dir <dir>]
  apfed serve [--host 127.0.0.1] [--port 8080] [--username admin]
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from .actor import LocalActor
from .client import FederationClient
from .config import ClientConfig
from .errors import ApfedError, MalformedHandle
from .keys import KeyMaterial, generate_keypair
from .server import InboxServer
from .webfinger import parse_handle

COLLECTION_KINDS = {
    "followers": "get_actor_followers_collection",
    "following": "get_actor_following_collection",
    "outbox": "get_actor_outbox_collection",
    "shared-inbox": "get_actor_shared_inbox_collection",
}


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def load_key_material(args) -> Optional[KeyMaterial]:
    """Build signing keys from --key-id / --private-key, if both were given."""
    if not args.key_id or not args.private_key:
        return None
    private_pem = Path(args.private_key).read_text()
    return KeyMaterial(key_id=args.key_id, private_key=private_pem)


def make_client(args) -> FederationClient:
    return FederationClient(config=ClientConfig.load(args.config))


def resolve_actor(client: FederationClient, target: str, keys: Optional[KeyMaterial]):
    """Fetch an actor from a handle or a profile URL."""
    try:
        parse_handle(target)
    except MalformedHandle:
        return client.get_actor(target, keys)
    return client.get_actor_by_handle(target, keys)


def cmd_webfinger(args):
    """Resolve a handle via WebFinger."""
    client = make_client(args)
    webfinger = client.get_webfinger(args.handle, load_key_material(args))
    if webfinger is None:
        print(f"No WebFinger document for {args.handle}", file=sys.stderr)
        sys.exit(1)

    _print_json(webfinger.to_dict())
    if webfinger.profile_id:
        print(f"\nProfile: {webfinger.profile_id}")


def cmd_actor(args):
    """Fetch an actor document."""
    client = make_client(args)
    actor = resolve_actor(client, args.target, load_key_material(args))
    _print_json(actor)


def cmd_collection(args):
    """Fetch one of an actor's collections."""
    client = make_client(args)
    keys = load_key_material(args)

    actor = resolve_actor(client, args.target, keys)
    if not isinstance(actor, dict):
        print(f"No actor found for {args.target}", file=sys.stderr)
        sys.exit(1)

    collection = getattr(client, COLLECTION_KINDS[args.kind])(actor, keys)
    if collection is None:
        print(f"Actor has no {args.kind} collection", file=sys.stderr)
        sys.exit(1)

    if not args.pages:
        _print_json(collection)
        return

    pages = client.get_all_pages_in_collection(collection, keys, limit=args.pages)
    print(f"Fetched {len(pages)} page(s)", file=sys.stderr)
    _print_json(pages)


def cmd_post(args):
    """Deliver a JSON document to an inbox."""
    keys = load_key_material(args)
    if keys is None:
        print("Error: post requires --key-id and --private-key", file=sys.stderr)
        sys.exit(1)

    if args.file == "-":
        document = json.load(sys.stdin)
    else:
        with open(args.file, "r") as f:
            document = json.load(f)

    client = make_client(args)
    result = client.sign_and_post_request(keys, args.url, document)
    if result is not None:
        _print_json(result)


def cmd_keygen(args):
    """Generate a key pair and print the actor document."""
    private_pem, public_pem = generate_keypair()
    actor = LocalActor(
        username=args.username,
        domain=args.domain,
        public_key=public_pem,
        private_key=private_pem,
    )

    out_dir = Path(args.out_dir) if args.out_dir else Path(".")
    out_dir.mkdir(parents=True, exist_ok=True)

    private_path = out_dir / f"{args.username}.private.pem"
    private_path.write_text(private_pem)
    os.chmod(private_path, 0o600)  # Owner read/write only
    (out_dir / f"{args.username}.public.pem").write_text(public_pem)

    print(f"Private key: {private_path}", file=sys.stderr)
    print(f"Key ID: {actor.key_id}", file=sys.stderr)
    _print_json(actor.to_activitypub())


def cmd_serve(args):
    """Run an inbox server for one local actor."""
    private_pem, public_pem = generate_keypair()
    actor = LocalActor(
        username=args.username,
        domain=args.domain or f"{args.host}:{args.port}",
        public_key=public_pem,
        private_key=private_pem,
        scheme="https" if args.domain else "http",
    )

    server = InboxServer(actors=[actor], host=args.host, port=args.port, client=make_client(args))
    print(f"Serving {actor.handle} ({actor.id}) on http://{args.host}:{args.port}")
    server.start()


def main():
    parser = argparse.ArgumentParser(
        prog="apfed",
        description="apfed - ActivityPub federation client",
    )
    parser.add_argument("--config", help="Config YAML file (default: $APFED_CONFIG)")
    parser.add_argument("--key-id", help="Key ID to sign requests with")
    parser.add_argument("--private-key", help="PEM private key file to sign requests with")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # webfinger command
    webfinger_parser = subparsers.add_parser("webfinger", help="Resolve a handle")
    webfinger_parser.add_argument("handle", help="Handle: [@]user@host[:port]")

    # actor command
    actor_parser = subparsers.add_parser("actor", help="Fetch an actor document")
    actor_parser.add_argument("target", help="Handle or actor URL")

    # collection command
    collection_parser = subparsers.add_parser("collection", help="Fetch an actor collection")
    collection_parser.add_argument("target", help="Handle or actor URL")
    collection_parser.add_argument("--kind", choices=sorted(COLLECTION_KINDS), default="outbox",
                                   help="Collection to fetch (default: outbox)")
    collection_parser.add_argument("--pages", type=int, default=0,
                                   help="Walk up to N pages starting at first")

    # post command
    post_parser = subparsers.add_parser("post", help="Deliver a signed JSON document")
    post_parser.add_argument("url", help="Inbox URL")
    post_parser.add_argument("file", help="JSON file, or - for stdin")

    # keygen command
    keygen_parser = subparsers.add_parser("keygen", help="Generate an actor key pair")
    keygen_parser.add_argument("username", help="Actor username")
    keygen_parser.add_argument("--domain", required=True, help="Actor domain")
    keygen_parser.add_argument("--out-dir", help="Directory for PEM files (default: .)")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run an inbox server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    serve_parser.add_argument("--username", default="admin", help="Actor username")
    serve_parser.add_argument("--domain", help="Public domain of the actor (default: host:port)")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    commands = {
        "webfinger": cmd_webfinger,
        "actor": cmd_actor,
        "collection": cmd_collection,
        "post": cmd_post,
        "keygen": cmd_keygen,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except ApfedError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
