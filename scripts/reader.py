#!/usr/bin/env python3
"""Command-line reader for The Old Reader."""

import sys
import asyncio
import argparse
import getpass
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from reader_sync.config.settings import settings
from reader_sync.gateway.client import OldReaderGateway
from reader_sync.session.store import TokenStore
from reader_sync.state.interfaces import SessionStatus
from reader_sync.sync.engine import SyncEngine


def print_header(title):
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def on_navigate(route):
    print(f"  -> {route.value}")


async def cmd_login(engine, args):
    """Log in and store the token."""
    password = getpass.getpass("Password: ")
    if await engine.login(args.username, password):
        print("Logged in.")
        return True

    print(engine.login_error)
    print(f"Sign up:         {settings.sign_up_url}")
    print(f"Forgot password: {settings.forgot_password_url}")
    return False


async def cmd_logout(engine, args):
    """Forget the stored token."""
    await engine.logout()
    print("Logged out.")
    return True


async def cmd_status(engine, args):
    """Show session status and device id."""
    status = await engine.check_auth()
    print(f"Status:    {status.name.lower()}")
    print(f"Device id: {engine.token_store.device_id()}")
    return status is SessionStatus.AUTHENTICATED


async def cmd_whoami(engine, args):
    """Show account details."""
    info = await engine.load_user_info()
    if info is None:
        print("Could not load user info.")
        return False
    print(f"{info.user_name} <{info.email}> ({info.user_id})")
    return True


async def cmd_feeds(engine, args):
    """Refresh and list subscriptions."""
    if not await engine.refresh_subscriptions():
        print("Could not refresh subscriptions.")
        return False

    feeds = engine.registry.feeds
    print_header(f"SUBSCRIPTIONS ({len(feeds)})")
    for feed in feeds:
        print(f"  {feed.unread_count:5}  {feed.title}  [{feed.id}]")
    return True


async def cmd_read(engine, args):
    """Select a feed and load article batches."""
    await engine.refresh_subscriptions()
    if not await engine.select_feed(args.feed_id):
        print("Could not load feed.")
        return False

    for _ in range(args.batches - 1):
        if not await engine.fetch_batch():
            break

    articles = engine.collection.articles
    print_header(engine.current_feed_title or args.feed_id)
    for article in articles:
        if not article.is_fetched:
            continue
        marker = " " if article.is_read else "*"
        date = article.published_at.strftime("%Y-%m-%d %H:%M") if article.published_at else ""
        print(f"\n {marker} {article.title}")
        print(f"     {date}  {article.author}")
        if article.url:
            print(f"     {article.url}")
        print(f"     id: {article.id}")

    remaining = len(engine.collection.stubs())
    if remaining:
        print(f"\n  ({remaining} more not loaded)")
    return True


async def cmd_mark(engine, args):
    """Mark an article read or unread."""
    # Read articles are only listed when the filter is off
    engine.only_unread = False
    if not await engine.select_feed(args.feed_id):
        print("Could not load feed.")
        return False

    is_read = not args.unread
    if not await engine.toggle_read(args.article_id, is_read):
        print("Could not change read state.")
        return False
    print(f"Marked {'read' if is_read else 'unread'}.")
    return True


COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "status": cmd_status,
    "whoami": cmd_whoami,
    "feeds": cmd_feeds,
    "read": cmd_read,
    "mark": cmd_mark,
}


async def run(args):
    store = TokenStore()
    async with OldReaderGateway() as gateway:
        engine = SyncEngine(gateway, store, on_navigate=on_navigate)
        await engine.check_auth()
        return await COMMANDS[args.command](engine, args)


def main():
    parser = argparse.ArgumentParser(
        description="Read your Old Reader subscriptions"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # login
    p = subparsers.add_parser("login", help="Log in and store the token")
    p.add_argument("username", help="Account email")

    subparsers.add_parser("logout", help="Forget the stored token")
    subparsers.add_parser("status", help="Show session status")
    subparsers.add_parser("whoami", help="Show account details")
    subparsers.add_parser("feeds", help="List subscriptions with unread counts")

    # read
    p = subparsers.add_parser("read", help="Show articles of a feed")
    p.add_argument("feed_id", help="Feed id (as listed by 'feeds')")
    p.add_argument("--batches", type=int, default=1, help="Content batches to load")

    # mark
    p = subparsers.add_parser("mark", help="Mark an article read")
    p.add_argument("feed_id", help="Feed the article belongs to")
    p.add_argument("article_id", help="Article id (as listed by 'read')")
    p.add_argument("--unread", action="store_true", help="Mark unread instead")

    args = parser.parse_args()

    if args.command not in COMMANDS:
        parser.print_help()
        return

    ok = asyncio.run(run(args))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
