"""
Reconnect Command Line

Commands:
- serve: Run the persistence server
- status: Show the server's directory status
- search: Search registered persons
- register: Register a person (optionally with a photo)
- contact: Show contact details for a record

Usage:
    reconnect <command> [options]

Examples:
    reconnect serve --root /srv/reconnect --port 3000
    reconnect search --location cairo --age-min 5 --age-max 15 --category missing
    reconnect register --name "Omar Haddad" --age 10 --category missing --location Cairo --photo omar.jpg
"""

import argparse
import json
import sys
from pathlib import Path

import httpx
from pydantic import ValidationError

from reconnect.config import ClientConfig, ServerConfig
from reconnect.core import CriteriaError, FilterCriteria, LocalCache, RecordStore
from reconnect.schemas import Category, Gender


def _client_parts(args):
    from reconnect.client import PersistenceClient

    config = ClientConfig.from_env()
    server_url = args.server or config.server_url
    cache = LocalCache(config.cache_dir) if config.cache_dir else None
    client = PersistenceClient(server_url, timeout=config.timeout, cache=cache)
    return config, client, cache


def _open_session(args):
    from reconnect.client import SearchSession, load_records, persister_for

    config, client, cache = _client_parts(args)
    records, source = load_records(client, cache)
    store = RecordStore(persister=persister_for(client, source), cache=cache)
    store.initialize(records)
    page_size = getattr(args, "page_size", None) or config.page_size
    return SearchSession(store, page_size=page_size), client, cache, source


def _print_record(record) -> None:
    description = record.description
    if len(description) > 100:
        description = description[:100] + "..."
    print(f"- [{record.id}] {record.name} ({record.category.display_name})")
    print(f"    Age: {record.age}  Location: {record.location}  Reported: {record.date_reported}")
    if description:
        print(f"    {description}")


def cmd_serve(args):
    """Run the persistence server."""
    from reconnect.main import run

    config = ServerConfig.from_env(root_override=args.root)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    run(config)
    return 0


def cmd_status(args):
    """Show the server status."""
    _, client, _ = _client_parts(args)
    with client:
        try:
            status = client.status()
        except httpx.HTTPError as e:
            print(f"[FAIL] Server unreachable: {e}")
            return 1
    print(json.dumps(status, indent=2))
    return 0


def cmd_search(args):
    """Search registered persons."""
    from reconnect.client import RecordSource

    try:
        criteria = FilterCriteria.from_form({
            "location": args.location,
            "age_min": args.age_min,
            "age_max": args.age_max,
            "category": args.category,
            "since": args.since,
        })
    except CriteriaError as e:
        print(f"Error: {e}")
        return 2

    session, client, _, source = _open_session(args)
    with client:
        if source != RecordSource.SERVER:
            print(f"Warning: server unavailable, using {source.value} data")

        results = session.search(criteria)
        page = session.go_to(args.page)

        print(f"Found {len(results)} matching results")
        if not page.items:
            print("No matching results found. Try adjusting your search filters.")
        for record in page.items:
            _print_record(record)
        print(page.indicator)
    return 0


def cmd_contact(args):
    """Show contact details for one record."""
    session, client, _, _ = _open_session(args)
    with client:
        record = session.store.get(args.record_id)
        if record is None:
            print(f"No record with id {args.record_id}")
            return 1
        contact = record.contact_info
        print(f"Contact Information for {record.name}:")
        print(f"  Contact: {contact.name}")
        print(f"  Email: {contact.email}")
        print(f"  Phone: {contact.phone}")
    return 0


def cmd_register(args):
    """Register a new person."""
    from reconnect.client import (
        CANONICAL_DOCUMENT_PATH,
        ImageUploader,
        ManualRecovery,
        RegistrationForm,
        RegistrationService,
    )

    try:
        form = RegistrationForm(
            name=args.name,
            age=args.age,
            gender=args.gender,
            category=args.category,
            description=args.description,
            location=args.location,
            contact_name=args.contact_name,
            contact_phone=args.contact_phone,
            contact_email=args.contact_email,
            additional_details=args.additional_details,
        )
    except ValidationError as e:
        print(f"Error: {e}")
        return 2

    session, client, cache, _ = _open_session(args)
    with client:
        target = CANONICAL_DOCUMENT_PATH
        try:
            target = str(Path(client.status()["projectRoot"]) / CANONICAL_DOCUMENT_PATH)
        except (httpx.HTTPError, KeyError, ValueError):
            # Server status unknown; point the operator at the relative path
            target = CANONICAL_DOCUMENT_PATH

        service = RegistrationService(
            session.store,
            uploader=ImageUploader(client, cache),
            recovery=ManualRecovery(target),
        )
        result = service.register(form, photo=args.photo)
        session.reset()

    print(f"Person registered successfully! id={result.record.id}")
    if result.upload is not None and not result.upload.success:
        print("Note: photo upload failed, the placeholder image is used")
    if result.persisted is not None and result.persisted.committed:
        print("Person data saved to persons.json successfully!")
    elif result.persisted is not None:
        print(f"Error: {result.persisted.message}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="reconnect",
        description="Reconnect registry of missing and displaced persons",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the persistence server")
    serve_parser.add_argument("--root", help="Project root holding data/ and img/")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    def add_server_option(p):
        p.add_argument("--server", help="Persistence server URL")

    # status
    status_parser = subparsers.add_parser("status", help="Show server status")
    add_server_option(status_parser)

    # search
    search_parser = subparsers.add_parser("search", help="Search registered persons")
    add_server_option(search_parser)
    search_parser.add_argument("--location", help="Location contains (case-insensitive)")
    search_parser.add_argument("--age-min", dest="age_min")
    search_parser.add_argument("--age-max", dest="age_max")
    search_parser.add_argument(
        "--category",
        choices=["all"] + [c.value for c in Category],
        default="all",
    )
    search_parser.add_argument("--since", help="Reported on or after (YYYY-MM-DD)")
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--page-size", dest="page_size", type=int)

    # register
    register_parser = subparsers.add_parser("register", help="Register a person")
    add_server_option(register_parser)
    register_parser.add_argument("--name", required=True)
    register_parser.add_argument("--age", required=True)
    register_parser.add_argument(
        "--gender",
        choices=[g.value for g in Gender],
        default=Gender.NOT_SPECIFIED.value,
    )
    register_parser.add_argument("--category", required=True, choices=[c.value for c in Category])
    register_parser.add_argument("--location", required=True)
    register_parser.add_argument("--description", default="")
    register_parser.add_argument("--contact-name", dest="contact_name", default="")
    register_parser.add_argument("--contact-phone", dest="contact_phone", default="")
    register_parser.add_argument("--contact-email", dest="contact_email", default="")
    register_parser.add_argument("--additional-details", dest="additional_details", default="")
    register_parser.add_argument("--photo", type=Path, help="Photo file to upload")

    # contact
    contact_parser = subparsers.add_parser("contact", help="Show contact details")
    add_server_option(contact_parser)
    contact_parser.add_argument("record_id")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "serve": cmd_serve,
        "status": cmd_status,
        "search": cmd_search,
        "register": cmd_register,
        "contact": cmd_contact,
    }

    if args.command != "serve":
        from reconnect.observability import setup_logging
        setup_logging()

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
